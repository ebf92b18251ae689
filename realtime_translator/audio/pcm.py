"""PCM conversion and level utilities."""
import numpy as np

from realtime_translator.spec import AUDIO_BYTES_PER_SECOND


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated sample (odd-length pipe read); ignore the dangling byte.
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")  # little-endian int16
    audio_f32 = audio_i16.astype(np.float32) / 32768.0
    return audio_f32


def rms_dbfs(pcm_bytes: bytes) -> float:
    """
    RMS level of a PCM16 buffer in dBFS.

    Returns -inf for empty or fully silent input.
    """
    samples = pcm16le_to_float32(pcm_bytes)
    if samples.size == 0:
        return float("-inf")
    rms = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
    if rms <= 0.0:
        return float("-inf")
    return 20.0 * float(np.log10(rms))


def bytes_to_seconds(num_bytes: int) -> float:
    """Duration of num_bytes of PCM16 mono 24kHz audio."""
    if num_bytes <= 0:
        return 0.0
    return num_bytes / AUDIO_BYTES_PER_SECOND
