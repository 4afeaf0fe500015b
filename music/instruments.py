"""Instrument layouts: piano keyboard, metallophone bars, guitar chords, recorder fingerings."""
from typing import Dict, List, NamedTuple, Optional, Sequence

from music.voice_graph import Timbre

# Note length each instrument uses when a single key/bar is hit
DEFAULT_DURATIONS: Dict[Timbre, float] = {
    Timbre.METALLOPHONE: 0.8,
    Timbre.PIANO: 1.5,
    Timbre.GUITAR: 1.5,
    Timbre.FLUTE: 1.0,
}


# ── Piano (88 keys) ──────────────────────────────────────────────

class PianoKey(NamedTuple):
    index: int
    name: str
    label: str
    frequency: float
    is_black: bool
    octave: int


def _generate_piano_keys() -> List[PianoKey]:
    names = ['A', 'A#', 'B', 'C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#']
    keys = []
    for i in range(88):
        label = names[i % 12]
        octave = (i + 9) // 12
        keys.append(PianoKey(
            index=i,
            name=f"{label}{octave}",
            label=label,
            frequency=27.5 * (2.0 ** (i / 12.0)),
            is_black='#' in label,
            octave=octave,
        ))
    return keys


PIANO_KEYS: List[PianoKey] = _generate_piano_keys()
_PIANO_BY_NAME = {k.name: k for k in PIANO_KEYS}


def piano_key(name: str) -> Optional[PianoKey]:
    """Look up a key by scientific name, e.g. "A4" or "C#5"."""
    return _PIANO_BY_NAME.get(name.strip().upper())


# ── Metallophone ─────────────────────────────────────────────────

class Bar(NamedTuple):
    name: str
    label: str
    frequency: float


METALLOPHONE_BARS: List[Bar] = [
    Bar('C5', 'DO', 523.25), Bar('D5', 'RE', 587.33), Bar('E5', 'MI', 659.25),
    Bar('F5', 'FA', 698.46), Bar('G5', 'SOL', 783.99), Bar('A5', 'LA', 880.00),
    Bar('B5', 'SI', 987.77), Bar('C6', 'DO', 1046.50), Bar('D6', 'RE', 1174.66),
    Bar('E6', 'MI', 1318.51), Bar('F6', 'FA', 1396.91), Bar('G6', 'SOL', 1567.98),
    Bar('A6', 'LA', 1760.00), Bar('B6', 'SI', 1975.53), Bar('C7', 'DO', 2093.00),
]

METALLOPHONE_ACCIDENTALS: List[Bar] = [
    Bar('C#5', 'DO#', 554.37), Bar('D#5', 'RE#', 622.25),
    Bar('F#5', 'FA#', 739.99), Bar('G#5', 'SOL#', 830.61), Bar('A#5', 'LA#', 932.33),
    Bar('C#6', 'DO#', 1108.73), Bar('D#6', 'RE#', 1244.51),
    Bar('F#6', 'FA#', 1479.98), Bar('G#6', 'SOL#', 1661.22), Bar('A#6', 'LA#', 1864.66),
]


# ── Guitar ───────────────────────────────────────────────────────

# Open strings low to high: E2 A2 D3 G3 B3 E4
GUITAR_TUNING: List[float] = [82.41, 110.00, 146.83, 196.00, 246.94, 329.63]

MUTED = -1


class ChordShape(NamedTuple):
    frets: List[int]
    fingers: List[int]
    explanation: str


GUITAR_CHORDS: Dict[str, Dict[str, ChordShape]] = {
    'C': {
        'Mayor': ChordShape([-1, 3, 2, 0, 1, 0], [0, 3, 2, 0, 1, 0], 'Do Mayor. Dedo 1 en Si, Dedo 2 en Re, Dedo 3 en La.'),
        'Menor': ChordShape([-1, 3, 5, 5, 4, 3], [0, 1, 3, 4, 2, 1], 'Do Menor. Cejilla en traste 3.'),
        '7': ChordShape([-1, 3, 2, 3, 1, 0], [0, 3, 2, 4, 1, 0], 'Do Séptima. Añade el dedo meñique en Sol (3ra cuerda).'),
        'Maj7': ChordShape([-1, 3, 2, 0, 0, 0], [0, 3, 2, 0, 0, 0], 'Do Maj7. Levanta el dedo índice.'),
    },
    'D': {
        'Mayor': ChordShape([-1, -1, 0, 2, 3, 2], [0, 0, 0, 1, 3, 2], 'Re Mayor. Triángulo clásico.'),
        'Menor': ChordShape([-1, -1, 0, 2, 3, 1], [0, 0, 0, 2, 3, 1], 'Re Menor.'),
    },
    'E': {
        'Mayor': ChordShape([0, 2, 2, 1, 0, 0], [0, 2, 3, 1, 0, 0], 'Mi Mayor. Usa todas las cuerdas.'),
        'Menor': ChordShape([0, 2, 2, 0, 0, 0], [0, 2, 3, 0, 0, 0], 'Mi Menor. Solo dos dedos.'),
    },
    'G': {
        'Mayor': ChordShape([3, 2, 0, 0, 0, 3], [2, 1, 0, 0, 0, 3], 'Sol Mayor.'),
    },
    'A': {
        'Mayor': ChordShape([-1, 0, 2, 2, 2, 0], [0, 0, 1, 2, 3, 0], 'La Mayor. Tres dedos en línea.'),
        'Menor': ChordShape([-1, 0, 2, 2, 1, 0], [0, 0, 2, 3, 1, 0], 'La Menor.'),
    },
}


def fret_frequencies(frets: Sequence[int], tuning: Sequence[float] = GUITAR_TUNING) -> List[float]:
    """Turn a fret shape (low string first, -1 = muted) into a strum order.

    Examples:
        >>> [round(f, 2) for f in fret_frequencies([0, 2, 2, 0, 0, 0])][:3]
        [82.41, 123.47, 164.81]
    """
    freqs = []
    for string_idx, fret in enumerate(frets[:len(tuning)]):
        if fret is None or fret < 0:
            continue
        freqs.append(tuning[string_idx] * (2.0 ** (fret / 12.0)))
    return freqs


def guitar_chord(root: str, quality: str = 'Mayor') -> Optional[ChordShape]:
    return GUITAR_CHORDS.get(root, {}).get(quality)


# ── Recorder ─────────────────────────────────────────────────────

class RecorderNote(NamedTuple):
    name: str
    holes: List[float]
    explanation: str
    frequency: float


# 1 = covered, 0 = open, 0.5 = half-holed; thumb hole first
RECORDER_NOTES: List[RecorderNote] = [
    RecorderNote('DO (C5)', [1, 1, 1, 1, 1, 1, 1, 1], 'Todos los orificios tapados. Soplo suave.', 523.25),
    RecorderNote('RE (D5)', [1, 1, 1, 1, 1, 1, 1, 0], 'Destapar el orificio inferior.', 587.33),
    RecorderNote('MI (E5)', [1, 1, 1, 1, 1, 1, 0, 0], 'Mano derecha: solo dedo índice.', 659.25),
    RecorderNote('FA (F5)', [1, 1, 1, 1, 0, 1, 1, 0], 'Digitación barroca.', 698.46),
    RecorderNote('SOL (G5)', [1, 1, 1, 1, 0, 0, 0, 0], 'Solo mano izquierda.', 783.99),
    RecorderNote('LA (A5)', [1, 1, 1, 0, 0, 0, 0, 0], 'Dos dedos superiores.', 880.00),
    RecorderNote('SI (B5)', [1, 1, 0, 0, 0, 0, 0, 0], 'Solo dedo índice superior.', 987.77),
    RecorderNote('DO Agudo (C6)', [1, 0, 1, 0, 0, 0, 0, 0], 'Invertir índice y medio.', 1046.50),
    RecorderNote('RE Agudo (D6)', [0, 0, 1, 0, 0, 0, 0, 0], 'Solo dedo medio izquierdo (abierto atrás).', 1174.66),
]

RECORDER_HOLES = 8
# A fingered note sustains longer than a bar or key click
FINGERING_DURATION = 1.5
UNKNOWN_FINGERING_DURATION = 0.5


def recorder_note(holes: Sequence[float]) -> Optional[RecorderNote]:
    """Exact fingering match, or None."""
    key = [float(h) for h in holes]
    for note in RECORDER_NOTES:
        if [float(h) for h in note.holes] == key:
            return note
    return None


def recorder_frequency(holes: Sequence[float]) -> float:
    """Pitch for a fingering; unknown ones rise ~60 Hz per uncovered hole above C5."""
    note = recorder_note(holes)
    if note is not None:
        return note.frequency
    closed = sum(holes)
    return 523.25 + (RECORDER_HOLES - closed) * 60


def recorder_duration(holes: Sequence[float]) -> float:
    if recorder_note(holes) is not None:
        return FINGERING_DURATION
    return UNKNOWN_FINGERING_DURATION


def recorder_label(holes: Sequence[float]) -> str:
    note = recorder_note(holes)
    if note is not None:
        return note.name
    if all(h == 0 for h in holes):
        return "Silencio (Aire)"
    return "Posición desconocida"
