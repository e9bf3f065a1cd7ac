#!/usr/bin/env python3
"""Generate synthetic stems with known content for testing.

The generator functions are imported by the test modules; running this
file writes the same stems as WAVs to ``examples/``.
"""

import os

import numpy as np
import soundfile as sf

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "examples")


def generate_sine_wave(freq: float, duration: float, sr: int = 22050, amplitude: float = 0.5) -> np.ndarray:
    """Generate a pure sine wave."""
    t = np.arange(int(sr * duration)) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def generate_kick(sr: int = 22050, duration: float = 0.12, freq: float = 60.0) -> np.ndarray:
    """Low sine with a fast exponential decay."""
    t = np.arange(int(sr * duration)) / sr
    return (0.9 * np.sin(2 * np.pi * freq * t) * np.exp(-t / 0.02)).astype(np.float32)


def generate_hihat(sr: int = 22050, duration: float = 0.08, cutoff: float = 7000.0, seed: int = 0) -> np.ndarray:
    """Noise with everything below ``cutoff`` removed."""
    rng = np.random.default_rng(seed)
    n = int(sr * duration)
    spectrum = np.fft.rfft(rng.standard_normal(n))
    freqs = np.fft.rfftfreq(n, 1.0 / sr)
    spectrum[freqs < cutoff] = 0
    noise = np.fft.irfft(spectrum, n)
    noise /= np.max(np.abs(noise)) or 1.0
    t = np.arange(n) / sr
    return (0.3 * noise * np.exp(-t / 0.03)).astype(np.float32)


def place(audio: np.ndarray, sound: np.ndarray, time: float, sr: int) -> None:
    """Mix ``sound`` into ``audio`` starting at ``time`` seconds."""
    start = int(round(time * sr))
    end = min(len(audio), start + len(sound))
    if end > start:
        audio[start:end] += sound[:end - start]


def generate_drum_stem(
    bars: int = 16,
    bpm: float = 120.0,
    sr: int = 22050,
    intro_bars: int = 2,
):
    """
    Kick on every beat with three hi-hats between, after a silent intro.

    Returns:
        Tuple of (audio, onset times)
    """
    beat = 60.0 / bpm
    audio = np.zeros(int(round(bars * 4 * beat * sr)), dtype=np.float32)
    kick = generate_kick(sr)
    hat = generate_hihat(sr)

    onsets = []
    for b in range(intro_bars * 4, bars * 4):
        t = b * beat
        place(audio, kick, t, sr)
        onsets.append(t)
        for k in (1, 2, 3):
            place(audio, hat, t + k * beat / 4, sr)
            onsets.append(t + k * beat / 4)
    return audio, np.array(onsets)


def generate_bass_stem(
    freq: float = 110.0,
    notes: int = 16,
    bpm: float = 120.0,
    sr: int = 22050,
):
    """
    One sustained note per beat.

    Returns:
        Tuple of (audio, onset times)
    """
    beat = 60.0 / bpm
    audio = np.zeros(int(round(notes * beat * sr)), dtype=np.float32)
    note = generate_sine_wave(freq, beat * 0.9, sr, amplitude=0.6)
    onsets = [i * beat for i in range(notes)]
    for t in onsets:
        place(audio, note, t, sr)
    return audio, np.array(onsets)


def generate_bar_cycle(
    freqs=(100.0, 400.0, 1500.0, 5000.0),
    bars: int = 16,
    bpm: float = 120.0,
    sr: int = 22050,
) -> np.ndarray:
    """Each bar is a sine at the next frequency of ``freqs``, cycling."""
    bar = 4 * 60.0 / bpm
    return np.concatenate(
        [generate_sine_wave(freqs[i % len(freqs)], bar, sr) for i in range(bars)]
    )


def save_wav(filename: str, audio: np.ndarray, sr: int = 22050) -> str:
    """Save audio as WAV file."""
    filepath = os.path.join(EXAMPLES_DIR, filename)
    sf.write(filepath, audio, sr, subtype="PCM_16")
    print(f"Created: {filepath}")
    return filepath


def main():
    os.makedirs(EXAMPLES_DIR, exist_ok=True)
    sr = 22050

    print("Generating drums.wav...")
    drums, _ = generate_drum_stem(sr=sr)
    save_wav("drums.wav", drums, sr)

    print("Generating bass.wav...")
    bass, _ = generate_bass_stem(sr=sr)
    save_wav("bass.wav", bass, sr)

    print("Generating bar_cycle.wav...")
    save_wav("bar_cycle.wav", generate_bar_cycle(sr=sr), sr)

    print("Generating silence.wav...")
    save_wav("silence.wav", np.zeros(sr * 2, dtype=np.float32), sr)

    print("\nAll test audio files generated!")


if __name__ == "__main__":
    main()
