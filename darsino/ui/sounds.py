"""Alarm tones, synthesised once per session into small WAV files."""
from __future__ import annotations

import math
import struct
import tempfile
import wave
from functools import lru_cache
from pathlib import Path

from darsino.domain.enums import AlarmSound

SAMPLE_RATE = 22050
TONE_FRAMES = 13230  # 0.6 s
PEAK = 0.8 * 32767

# Frequencies in Hz played one after another; 0 is a rest.
TONES: dict[AlarmSound, tuple[tuple[float, ...], str]] = {
    AlarmSound.BELL: ((880.0,), "decay"),
    AlarmSound.CHIME: ((660.0, 990.0), "decay"),
    AlarmSound.DIGITAL: ((1000.0, 0.0, 1000.0), "square"),
}


def _samples(sound: AlarmSound):
    frequencies, shape = TONES[sound]
    step = TONE_FRAMES // len(frequencies)
    for frequency in frequencies:
        for index in range(step):
            if not frequency:
                yield 0.0
                continue
            wave_value = math.sin(2 * math.pi * frequency * index / SAMPLE_RATE)
            if shape == "square":
                yield 0.5 if wave_value >= 0 else -0.5
            else:
                yield wave_value * math.exp(-4.0 * index / step)


def render_tone(sound: AlarmSound | str, path: Path) -> Path:
    frames = b"".join(
        struct.pack("<h", int(sample * PEAK)) for sample in _samples(AlarmSound(sound))
    )
    with wave.open(str(path), "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(SAMPLE_RATE)
        out.writeframes(frames)
    return path


@lru_cache(maxsize=None)
def tone_path(sound: AlarmSound) -> Path:
    directory = Path(tempfile.gettempdir()) / "darsino-tones"
    directory.mkdir(exist_ok=True)
    return render_tone(sound, directory / f"{AlarmSound(sound).value}.wav")
