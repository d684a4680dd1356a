import numpy as np
import pytest

from vocaltract.buffers import AudioClip
from vocaltract.errors import InvalidConfigError
from vocaltract.sources import Waveform
from vocaltract.synthesis import EngineConfig, render
from vocaltract.vocoder import CarrierKind, VocoderConfig, band_centres, vocode

from signals import sine

SR = 16000


def _centroid(x, sr):
    spectrum = np.abs(np.fft.rfft(x)) ** 2
    freqs = np.fft.rfftfreq(x.size, 1.0 / sr)
    return float(np.sum(freqs * spectrum) / np.sum(spectrum))


@pytest.fixture
def noise_carrier():
    return AudioClip(np.random.default_rng(9).uniform(-0.5, 0.5, SR), SR, 'carrier.wav')


def test_band_centres_are_log_spaced_below_nyquist():
    centres = band_centres(40, 100.0, 10000.0, SR)
    assert centres.size == 40
    assert np.all(np.diff(centres) > 0.0)
    assert centres[0] > 100.0
    assert centres[-1] < 0.49 * SR
    ratios = centres[1:] / centres[:-1]
    np.testing.assert_allclose(ratios, ratios[0])


@pytest.mark.parametrize('bands', [39, 129])
def test_band_count_is_bounded(bands, noise_carrier):
    modulator = AudioClip(sine(300.0, 0.1, SR), SR)
    with pytest.raises(InvalidConfigError):
        vocode(noise_carrier, modulator, VocoderConfig(bands=bands))


def test_band_count_limits_are_accepted(noise_carrier):
    modulator = AudioClip(sine(300.0, 0.1, SR), SR)
    for bands in (40, 128):
        assert vocode(noise_carrier, modulator, VocoderConfig(bands=bands)).frameCount == modulator.frameCount


def test_file_carrier_requires_clip():
    with pytest.raises(InvalidConfigError):
        vocode(None, AudioClip(sine(300.0, 0.1, SR), SR))


def test_modulator_spectrum_shapes_output(noise_carrier):
    low = vocode(noise_carrier, AudioClip(sine(300.0, 1.0, SR), SR)).samples
    high = vocode(noise_carrier, AudioClip(sine(3000.0, 1.0, SR), SR)).samples
    assert _centroid(high.astype(np.float64), SR) > 2.0 * _centroid(low.astype(np.float64), SR)


def test_silent_modulator_gives_silence(noise_carrier):
    out = vocode(noise_carrier, AudioClip(np.zeros(SR // 2), SR))
    assert np.max(np.abs(out.samples)) == 0.0


def test_output_follows_modulator_rate_and_length(noise_carrier):
    modulator = AudioClip(sine(500.0, 2.5, 22050), 22050)
    out = vocode(noise_carrier, modulator)
    assert out.sampleRate == 22050
    assert out.frameCount == modulator.frameCount


def test_dry_mix_returns_modulator(noise_carrier):
    mod = sine(440.0, 0.2, SR)
    out = vocode(noise_carrier, AudioClip(mod, SR), VocoderConfig(mix=0.0))
    np.testing.assert_allclose(out.samples, mod, atol=1e-4)


@pytest.mark.parametrize('waveform', [Waveform.SAWTOOTH, Waveform.NOISE])
def test_synth_carrier(waveform):
    config = VocoderConfig(carrierKind=CarrierKind.SYNTH, carrierWaveform=waveform, carrierDetuneCents=12.0)
    out = vocode(None, AudioClip(sine(300.0, 0.3, SR), SR), config)
    assert np.all(np.isfinite(out.samples))
    assert np.max(np.abs(out.samples)) > 0.0


def test_rendered_voice_can_carry_the_modulator():
    voice = render(EngineConfig(durationSeconds=0.25, sampleRate=SR)).to_clip('voice')
    assert voice.name == 'voice'
    out = vocode(voice, AudioClip(sine(300.0, 0.5, SR), SR))
    assert out.frameCount == SR // 2
    assert np.all(np.isfinite(out.samples))
    assert np.max(np.abs(out.samples)) > 0.0


def test_invalid_mix_rejected(noise_carrier):
    with pytest.raises(InvalidConfigError):
        vocode(noise_carrier, AudioClip(sine(300.0, 0.1, SR), SR), VocoderConfig(mix=1.5))
