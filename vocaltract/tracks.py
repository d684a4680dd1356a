# Created on 2026-10-18
# Description: Keyframe automation tracks and their interpolation math.
"""Keyframe automation tracks.

A :class:`Track` is an immutable value: every edit (:meth:`Track.insert`,
:meth:`Track.move`, :meth:`Track.delete`) returns a new track, so a render
thread can keep evaluating a snapshot while the interactive thread edits.
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import DEFAULT_TRACK_LAYOUT

__all__ = [
    "Interpolation",
    "KeyframePoint",
    "Track",
    "evaluate",
    "sample_track",
    "make_track",
    "default_tracks",
    "simplify_points",
]

# Segments shorter than this are treated as coincident keyframes.
_MIN_SEGMENT = 1e-9


class Interpolation(str, Enum):
    LINEAR = 'linear'
    CURVE = 'curve'


@dataclass(frozen=True)
class KeyframePoint:
    """A single (normalised time, value) control point."""

    t: float
    v: float


def _coerce_point(point: Any) -> KeyframePoint:
    if isinstance(point, KeyframePoint):
        return point
    if isinstance(point, Mapping):
        return KeyframePoint(float(point['t']), float(point['v']))
    t, v = point
    return KeyframePoint(float(t), float(v))


@dataclass(frozen=True)
class Track:
    """One animatable parameter's keyframe curve.

    Points are kept sorted by ``t`` (ties keep insertion order), ``t`` is
    clamped into [0, 1] and every value is clamped into ``valueRange``.
    """

    id: str
    displayRole: str
    valueRange: Tuple[float, float]
    interpolation: Interpolation = Interpolation.LINEAR
    points: Tuple[KeyframePoint, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        lo, hi = (float(x) for x in self.valueRange)
        if not hi > lo:
            raise ValueError(f"Track '{self.id}' needs a value range with min < max")
        object.__setattr__(self, 'valueRange', (lo, hi))
        object.__setattr__(self, 'interpolation', Interpolation(self.interpolation))
        cleaned = [
            KeyframePoint(min(1.0, max(0.0, p.t)), min(hi, max(lo, p.v)))
            for p in (_coerce_point(p) for p in self.points)
        ]
        cleaned.sort(key=lambda p: p.t)
        object.__setattr__(self, 'points', tuple(cleaned))

    # ---- evaluation ----
    def evaluate(self, t: float) -> float:
        return evaluate(self, t)

    @property
    def times(self) -> np.ndarray:
        return np.array([p.t for p in self.points], dtype=np.float64)

    @property
    def values(self) -> np.ndarray:
        return np.array([p.v for p in self.points], dtype=np.float64)

    # ---- edits ----
    def insert(self, t: float, v: float) -> "Track":
        return self.insert_with_index(t, v)[0]

    def insert_with_index(self, t: float, v: float) -> Tuple["Track", int]:
        """Insert a point and return the new track plus the point's index."""
        t = min(1.0, max(0.0, float(t)))
        index = bisect_right([p.t for p in self.points], t)
        pts = list(self.points)
        pts.insert(index, KeyframePoint(t, float(v)))
        return replace(self, points=tuple(pts)), index

    def move(self, index: int, t: float, v: float) -> "Track":
        return self.move_with_index(index, t, v)[0]

    def move_with_index(self, index: int, t: float, v: float) -> Tuple["Track", int]:
        """Move point ``index`` to ``(t, v)``; returns the track and the point's new index."""
        pts = list(self.points)
        pts.pop(index)
        t = min(1.0, max(0.0, float(t)))
        new_index = bisect_right([p.t for p in pts], t)
        pts.insert(new_index, KeyframePoint(t, float(v)))
        return replace(self, points=tuple(pts)), new_index

    def delete(self, index: int) -> "Track":
        """Remove point ``index``; a track never drops below two points."""
        pts = list(self.points)
        pts[index]  # raises IndexError for bad indices
        if len(pts) <= 2:
            return self
        pts.pop(index)
        return replace(self, points=tuple(pts))

    def with_interpolation(self, mode: Interpolation) -> "Track":
        return replace(self, interpolation=Interpolation(mode))

    def with_points(self, points: Iterable[Any]) -> "Track":
        return replace(self, points=tuple(_coerce_point(p) for p in points))

    def healed(self) -> "Track":
        """Return a render-ready track: at least two points, spanning t=0 to t=1."""
        pts = list(self.points)
        if not pts:
            mid = 0.5 * (self.valueRange[0] + self.valueRange[1])
            pts = [KeyframePoint(0.0, mid)]
        if pts[0].t > 0.0:
            pts.insert(0, KeyframePoint(0.0, pts[0].v))
        if pts[-1].t < 1.0 or len(pts) < 2:
            pts.append(KeyframePoint(1.0, pts[-1].v))
        if len(pts) == len(self.points):
            return self
        return replace(self, points=tuple(pts))

    # ---- serialisation ----
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'displayRole': self.displayRole,
            'valueRange': list(self.valueRange),
            'interpolation': self.interpolation.value,
            'points': [{'t': p.t, 'v': p.v} for p in self.points],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Track":
        return cls(
            id=str(data['id']),
            displayRole=str(data.get('displayRole', data['id'])),
            valueRange=tuple(data['valueRange']),
            interpolation=Interpolation(data.get('interpolation', Interpolation.LINEAR.value)),
            points=tuple(_coerce_point(p) for p in data.get('points', ())),
        )


def _segment_lookup(ts: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Index ``j`` of the right-hand point with ``ts[j-1] < t <= ts[j]``."""
    return np.searchsorted(ts, t, side='left')


def _pchip_tangents(ts: np.ndarray, vs: np.ndarray) -> np.ndarray:
    """Fritsch–Carlson tangents; coincident neighbours contribute no slope."""
    n = ts.size
    h = np.diff(ts)
    valid = h > _MIN_SEGMENT
    d = np.zeros_like(h)
    d[valid] = np.diff(vs)[valid] / h[valid]

    m = np.zeros(n, dtype=np.float64)
    for k in range(n):
        left = k > 0 and valid[k - 1]
        right = k < n - 1 and valid[k]
        if left and right:
            d0, d1 = d[k - 1], d[k]
            if d0 * d1 <= 0.0:
                continue
            h0, h1 = h[k - 1], h[k]
            w0 = 2.0 * h1 + h0
            w1 = h1 + 2.0 * h0
            m[k] = (w0 + w1) / (w0 / d0 + w1 / d1)
        elif left:
            m[k] = d[k - 1]
        elif right:
            m[k] = d[k]
    return m


def _evaluate_array(track: Track, t: np.ndarray) -> np.ndarray:
    t = np.asarray(t, dtype=np.float64)
    pts = track.points
    if not pts:
        lo, hi = track.valueRange
        return np.full(t.shape, 0.5 * (lo + hi), dtype=np.float64)
    ts = track.times
    vs = track.values
    if ts.size == 1:
        return np.full(t.shape, vs[0], dtype=np.float64)

    j = _segment_lookup(ts, t)
    out = np.empty(t.shape, dtype=np.float64)
    before = j == 0
    after = j >= ts.size
    inside = ~(before | after)
    out[before] = vs[0]
    out[after] = vs[-1]
    if not np.any(inside):
        return out

    jj = j[inside]
    ii = jj - 1
    t0, t1 = ts[ii], ts[jj]
    v0, v1 = vs[ii], vs[jj]
    h = t1 - t0
    s = (t[inside] - t0) / h

    if track.interpolation is Interpolation.CURVE:
        m = _pchip_tangents(ts, vs)
        m0, m1 = m[ii], m[jj]
        s2 = s * s
        s3 = s2 * s
        h00 = 2.0 * s3 - 3.0 * s2 + 1.0
        h10 = s3 - 2.0 * s2 + s
        h01 = -2.0 * s3 + 3.0 * s2
        h11 = s3 - s2
        val = h00 * v0 + h10 * h * m0 + h01 * v1 + h11 * h * m1
        flat = (v0 == v1) & (m0 == 0.0) & (m1 == 0.0)
        val = np.where(flat, v0, val)
        lo, hi = track.valueRange
        out[inside] = np.clip(val, lo, hi)
    else:
        val = v0 * (1.0 - s) + v1 * s
        out[inside] = np.where(v0 == v1, v0, val)
    return out


def evaluate(track: Track, t: float) -> float:
    """Value of ``track`` at normalised time ``t`` (held constant outside the points)."""
    return float(_evaluate_array(track, np.array([float(t)]))[0])


def sample_track(track: Track, count: int) -> np.ndarray:
    """Evaluate ``track`` at ``count`` evenly spaced instants spanning [0, 1]."""
    if count <= 0:
        return np.zeros(0, dtype=np.float64)
    if count == 1:
        return _evaluate_array(track, np.zeros(1))
    return _evaluate_array(track, np.linspace(0.0, 1.0, count, dtype=np.float64))


def make_track(
    trackId: str,
    points: Optional[Iterable[Any]] = None,
    interpolation: Interpolation = Interpolation.LINEAR,
) -> Track:
    """Build one of the standard tracks, with its default points unless given."""
    try:
        role, value_range, defaults = DEFAULT_TRACK_LAYOUT[trackId]
    except KeyError:
        raise KeyError(f'Unknown track id requested: {trackId}') from None
    pts = defaults if points is None else points
    return Track(trackId, role, value_range, interpolation, tuple(_coerce_point(p) for p in pts))


def default_tracks() -> Dict[str, Track]:
    """Fresh set of standard tracks keyed by id."""
    return {track_id: make_track(track_id) for track_id in DEFAULT_TRACK_LAYOUT}


def simplify_points(points: Sequence[Any], sensitivity: float) -> List[KeyframePoint]:
    """Ramer–Douglas–Peucker reduction of a keyframe list.

    ``sensitivity`` 1.0 keeps almost every point; 0.0 gives a tolerance of 51
    value units.
    """
    pts = [_coerce_point(p) for p in points]
    if len(pts) < 3:
        return pts
    tolerance = 1.0 + (1.0 - float(sensitivity)) * 50.0
    sq_tolerance = tolerance * tolerance

    keep = [False] * len(pts)
    keep[0] = keep[-1] = True
    stack = [(0, len(pts) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        a, b = pts[first], pts[last]
        dx = b.t - a.t
        dy = b.v - a.v
        den = np.hypot(dx, dy)
        max_sq = 0.0
        index = first
        for i in range(first + 1, last):
            p = pts[i]
            if den > 0.0:
                dist = abs(dy * p.t - dx * p.v + b.t * a.v - b.v * a.t) / den
            else:
                dist = np.hypot(p.t - a.t, p.v - a.v)
            if dist * dist > max_sq:
                max_sq = dist * dist
                index = i
        if max_sq > sq_tolerance:
            keep[index] = True
            stack.append((first, index))
            stack.append((index, last))
    return [p for p, k in zip(pts, keep) if k]
