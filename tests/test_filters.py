import numpy as np
import pytest
from scipy.signal import lfilter

from vocaltract.filters import (
    EQBand,
    EQBandType,
    _biquad_process,
    _biquad_process_timevarying,
    _clamp_frequency,
    _lowpass_biquad_coeff,
    _peaking_biquad_coeff,
    _peaking_biquad_coeff_track,
    apply_eq_chain,
    biquad_magnitude,
    default_eq_bands,
    design_biquad,
    eq_chain_response,
)

SR = 44100


def test_frequency_clamped_below_nyquist():
    assert _clamp_frequency(30000.0, SR) == pytest.approx(0.49 * SR)
    assert _clamp_frequency(5.0, SR) == 20.0
    assert _clamp_frequency(1000.0, SR) == 1000.0


def test_peaking_gain_at_centre():
    coeffs = _peaking_biquad_coeff(1000.0, 4.0, 12.0, SR)
    gain = biquad_magnitude(coeffs, [1000.0], SR)[0]
    assert gain == pytest.approx(10.0 ** (12.0 / 20.0), rel=1e-6)


def test_lowpass_unity_at_dc():
    coeffs = _lowpass_biquad_coeff(6000.0, 0.707, SR)
    assert biquad_magnitude(coeffs, [0.0], SR)[0] == pytest.approx(1.0)
    assert biquad_magnitude(coeffs, [20000.0], SR)[0] < 0.1


def test_shelves_reach_their_gain():
    low = design_biquad(EQBandType.LOWSHELF, 100.0, 0.7, 6.0, SR)
    high = design_biquad(EQBandType.HIGHSHELF, 8000.0, 0.7, 6.0, SR)
    target = 10.0 ** (6.0 / 20.0)
    assert biquad_magnitude(low, [0.0], SR)[0] == pytest.approx(target, rel=1e-6)
    assert biquad_magnitude(high, [SR / 2.0], SR)[0] == pytest.approx(target, rel=1e-6)


def test_out_of_range_frequency_stays_stable():
    coeffs = _peaking_biquad_coeff(50000.0, 4.0, 12.0, SR)
    impulse = np.zeros(4096)
    impulse[0] = 1.0
    response = _biquad_process(impulse, *coeffs)
    assert np.all(np.isfinite(response))
    assert abs(response[-1]) < 1e-6


def test_timevarying_matches_static_for_constant_coefficients():
    rng = np.random.default_rng(3)
    x = rng.uniform(-1.0, 1.0, 2000)
    n = x.size
    coeffs = _peaking_biquad_coeff_track(np.full(n, 700.0), 4.0, 12.0, SR)
    static = _peaking_biquad_coeff(700.0, 4.0, 12.0, SR)
    y = _biquad_process_timevarying(x, *coeffs)
    expected = lfilter(static[:3], [1.0, static[3], static[4]], x)
    np.testing.assert_allclose(y, expected, atol=1e-9)


def test_timevarying_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        _biquad_process_timevarying(np.zeros(10), *(np.zeros(9),) * 5)


def test_neutral_eq_is_transparent():
    rng = np.random.default_rng(0)
    x = rng.uniform(-1.0, 1.0, 4096)
    np.testing.assert_allclose(apply_eq_chain(x, default_eq_bands(), SR), x, atol=1e-9)


def test_disabled_band_is_bypassed():
    x = np.random.default_rng(1).uniform(-1.0, 1.0, 1024)
    band = EQBand(EQBandType.PEAKING, 1000.0, 12.0, 1.0, enabled=False)
    np.testing.assert_array_equal(apply_eq_chain(x, [band], SR), x)


def test_chain_response_multiplies_bands():
    bands = [EQBand(EQBandType.PEAKING, 1000.0, 6.0, 1.0), EQBand(EQBandType.PEAKING, 1000.0, 6.0, 1.0)]
    response = eq_chain_response(bands, [1000.0], SR)
    assert response[0] == pytest.approx(10.0 ** (12.0 / 20.0), rel=1e-6)


def test_band_validation_and_round_trip():
    with pytest.raises(ValueError):
        EQBand(EQBandType.PEAKING, 0.0)
    with pytest.raises(ValueError):
        EQBand(EQBandType.PEAKING, 1000.0, q=0.0)
    band = EQBand('highshelf', 8000.0, -3.0, 0.7)
    assert band.type is EQBandType.HIGHSHELF
    assert EQBand.from_dict(band.to_dict()) == band
    assert band.with_gain(2.0).gain == 2.0
