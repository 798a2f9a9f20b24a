"""
Embedded alert tone.

The tone is synthesised once as 16-bit mono PCM and wrapped in a WAV
container so it can be handed to the audio mixer like any sound file.
"""

import array
import functools
import io
import math
import wave

SAMPLE_RATE = 44100

# (frequency Hz, duration s) pairs played back to back
ALERT_NOTES = ((880.0, 0.12), (0.0, 0.04), (1320.0, 0.18))

AMPLITUDE = 0.4


def _render_note(frequency: float, duration: float) -> array.array:
    count = int(SAMPLE_RATE * duration)
    samples = array.array("h", [0] * count)
    if frequency <= 0:
        return samples

    fade = max(1, int(SAMPLE_RATE * 0.01))
    for i in range(count):
        # Short linear fade in/out to avoid clicks
        envelope = min(1.0, i / fade, (count - i) / fade)
        value = math.sin(2 * math.pi * frequency * i / SAMPLE_RATE)
        samples[i] = int(value * envelope * AMPLITUDE * 32767)

    return samples


@functools.lru_cache(maxsize=1)
def alert_tone_wav() -> bytes:
    """Return the alert tone as WAV file bytes."""
    pcm = array.array("h")
    for frequency, duration in ALERT_NOTES:
        pcm.extend(_render_note(frequency, duration))

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(SAMPLE_RATE)
        wav_file.writeframes(pcm.tobytes())

    return buffer.getvalue()
