import numpy as np
import pytest

from vocaltract.buffers import AudioClip
from vocaltract.sources import (
    ExcitationConfig,
    NoiseColor,
    NoiseConfig,
    SourceKind,
    Waveform,
    fit_clip,
    generate_breath,
    generate_excitation,
    oscillator,
    pink_noise,
    white_noise,
)
from vocaltract.tracks import make_track

SR = 44100


def _band_power(x, sr, lo, hi):
    spectrum = np.abs(np.fft.rfft(x)) ** 2
    freqs = np.fft.rfftfreq(x.size, 1.0 / sr)
    return spectrum[(freqs >= lo) & (freqs < hi)].mean()


def test_white_noise_is_seeded_and_bounded():
    a = white_noise(1000, np.random.default_rng(7))
    b = white_noise(1000, np.random.default_rng(7))
    np.testing.assert_array_equal(a, b)
    assert np.all(np.abs(a) <= 1.0)


def test_pink_noise_tilts_towards_low_frequencies():
    x = pink_noise(2 ** 16, np.random.default_rng(0))
    assert np.all(np.isfinite(x))
    assert _band_power(x, SR, 100.0, 500.0) > 5.0 * _band_power(x, SR, 5000.0, 10000.0)


def test_sine_oscillator_follows_frequency():
    y = oscillator(Waveform.SINE, np.full(1000, 441.0), SR)
    expected = np.sin(2.0 * np.pi * np.arange(1000) / 100.0)
    np.testing.assert_allclose(y, expected, atol=1e-6)


@pytest.mark.parametrize('waveform', [Waveform.SAWTOOTH, Waveform.SQUARE, Waveform.TRIANGLE, Waveform.COMPLEX])
def test_periodic_waveforms_are_bounded_and_centred(waveform):
    y = oscillator(waveform, np.full(SR, 220.0), SR, pulseWidth=0.3)
    assert np.max(np.abs(y)) <= 1.5
    assert abs(float(np.mean(y))) < 0.05


def test_triangle_follows_the_ideal_shape():
    freq = np.full(SR, 220.0)
    y = oscillator(Waveform.TRIANGLE, freq, SR)
    t = np.mod(np.arange(SR) * 220.0 / SR, 1.0)
    naive = 1.0 - 4.0 * np.abs(t - 0.5)
    np.testing.assert_allclose(y, naive, atol=0.1)
    assert np.max(y) == pytest.approx(1.0, abs=0.05)


def test_noise_is_not_an_oscillator():
    with pytest.raises(ValueError):
        oscillator(Waveform.NOISE, np.full(10, 100.0), SR)


def test_fit_clip_loops_or_pads():
    samples = np.array([1.0, 2.0, 3.0])
    np.testing.assert_array_equal(fit_clip(samples, 7, loop=True), [1, 2, 3, 1, 2, 3, 1])
    np.testing.assert_array_equal(fit_clip(samples, 5, loop=False), [1, 2, 3, 0, 0])
    np.testing.assert_array_equal(fit_clip(samples, 2, loop=False), [1, 2])


def test_file_excitation_is_resampled_and_padded():
    clip = AudioClip(np.ones(100), 22050, 'short.wav')
    config = ExcitationConfig(SourceKind.FILE, clip=clip, loop=False)
    y = generate_excitation(config, 1000, make_track('pitch'), SR, np.random.default_rng(0))
    assert y.size == 1000
    assert np.all(y[400:] == 0.0)
    assert np.mean(y[20:180]) == pytest.approx(1.0, abs=0.05)


def test_file_excitation_needs_a_clip():
    with pytest.raises(ValueError):
        generate_excitation(
            ExcitationConfig(SourceKind.FILE), 100, make_track('pitch'), SR, np.random.default_rng(0)
        )


def test_noise_waveform_excitation():
    config = ExcitationConfig(waveform='noise')
    y = generate_excitation(config, 500, make_track('pitch'), SR, np.random.default_rng(0))
    assert y.size == 500
    assert np.all(np.abs(y) <= 1.0)


def test_pink_noise_excitation():
    config = ExcitationConfig(waveform=Waveform.NOISE, color=NoiseColor.PINK)
    y = generate_excitation(config, 1000, make_track('pitch'), SR, np.random.default_rng(3))
    np.testing.assert_array_equal(y, pink_noise(1000, np.random.default_rng(3)))
    white = generate_excitation(ExcitationConfig(waveform='noise'), 1000, make_track('pitch'), SR, np.random.default_rng(3))
    np.testing.assert_array_equal(white, white_noise(1000, np.random.default_rng(3)))


def test_breath_off_is_silent():
    gain = np.full(200, 0.05)
    y = generate_breath(NoiseConfig(breathOn=False), 200, gain, SR, np.random.default_rng(0))
    np.testing.assert_array_equal(y, np.zeros(200))


def test_breath_scales_with_gain():
    rng_a = np.random.default_rng(4)
    rng_b = np.random.default_rng(4)
    config = NoiseConfig(color=NoiseColor.PINK)
    quiet = generate_breath(config, 4000, np.full(4000, 0.01), SR, rng_a)
    loud = generate_breath(config, 4000, np.full(4000, 0.04), SR, rng_b)
    np.testing.assert_allclose(loud, quiet * 4.0)
