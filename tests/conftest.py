import numpy as np
import pytest
import soundfile as sf

from clickslib.models import Beat, Clip
from clickslib.peaks import summarize_peaks


def make_clip(channel, clip, samples, bucket_size=256, samplerate=48000):
    samples = np.asarray(samples, dtype=np.float64)
    return Clip(
        channel_index=channel,
        clip_index=clip,
        path=f"{channel}/{clip}.wav",
        peak_buckets=summarize_peaks(samples, bucket_size),
        length=int(samples.size),
        samplerate=samplerate,
        bucket_size=bucket_size,
    )


def write_wav(path, samples, samplerate=48000, subtype="PCM_16"):
    path.parent.mkdir(parents=True, exist_ok=True)
    sf.write(str(path), samples, samplerate, subtype=subtype)
    return path


@pytest.fixture
def clip_factory():
    return make_clip


@pytest.fixture
def wav_writer():
    return write_wav


@pytest.fixture
def four_four():
    """Two bars of 4/4 at 120 BPM."""
    return [Beat(count=c, bar_number=b) for b in (1, 2) for c in (1, 2, 3, 4)]


@pytest.fixture
def show_dir(tmp_path):
    """A show folder with two channels of short sine clips."""
    t = np.arange(4800) / 48000.0
    tone = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    media = tmp_path / "playback_media"
    write_wav(media / "0" / "0.wav", tone)
    write_wav(media / "0" / "1.wav", tone[:1000])
    write_wav(media / "2" / "0.aiff", np.stack([tone, 0.5 * tone], axis=1))
    return tmp_path
