"""Rotation, quaternion and pseudo-inverse helpers.

Quaternions are numpy arrays ordered ``(w, x, y, z)``.
"""

from __future__ import annotations

import math

import numpy as np

_PI_APPROX = 3.1415


def _matrix(value) -> np.ndarray:
    return np.atleast_2d(np.asarray(value, dtype=float))


def _vector(value) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(-1)


def _diag_sum(r: np.ndarray) -> float:
    return float(r[0, 0] + r[1, 1] + r[2, 2])


def pseudo_inv_svd(mat) -> np.ndarray:
    """Moore-Penrose pseudo-inverse computed from a full SVD."""
    mat = _matrix(mat)
    rows, cols = mat.shape
    u, singular, vh = np.linalg.svd(mat, full_matrices=True)
    max_sv = max(0.0, float(singular.max())) if singular.size else 0.0
    tolerance = np.finfo(float).eps * max(rows, cols) * max_sv
    inverted = np.divide(
        1.0, singular, out=np.zeros_like(singular), where=singular > tolerance
    )
    sigma_inv = np.zeros((cols, rows))
    idx = np.arange(singular.size)
    sigma_inv[idx, idx] = inverted
    return vh.T @ sigma_inv @ u.conj().T


def pseudo_inv_right(m) -> np.ndarray:
    """Right pseudo-inverse ``M^T (M M^T)^-1``."""
    m = _matrix(m)
    gram = m @ m.T
    return m.T @ np.linalg.solve(gram, np.eye(gram.shape[0]))


def pseudo_inv_right_weighted(m, weights) -> np.ndarray:
    """Weighted right pseudo-inverse; ``weights`` is the diagonal of W."""
    m = _matrix(m)
    w_inv = np.diag(1.0 / _vector(weights))
    gram = m @ w_inv @ m.T
    return w_inv @ m.T @ np.linalg.pinv(gram)


def dyn_pseudo_inv(m, dyn_m, is_minv) -> np.ndarray:
    """Dynamically consistent pseudo-inverse of ``m`` under mass matrix ``dyn_m``.

    If ``is_minv`` is true, ``dyn_m`` is already the inverse mass matrix.
    """
    m = _matrix(m)
    dyn_m = _matrix(dyn_m)
    if is_minv:
        m_inv = dyn_m
    else:
        lower_inv = np.linalg.inv(np.linalg.cholesky(dyn_m))
        m_inv = lower_inv.T @ lower_inv
    gram = m @ m_inv @ m.T
    return m_inv @ m.T @ np.linalg.pinv(gram)


def rx3(theta) -> np.ndarray:
    """Rotation about the x axis."""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def ry3(theta) -> np.ndarray:
    """Rotation about the y axis."""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rz3(theta) -> np.ndarray:
    """Rotation about the z axis."""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def eul2rot(roll, pitch, yaw) -> np.ndarray:
    """Rotation matrix ``Rz(yaw) Ry(pitch) Rx(roll)``."""
    return rz3(yaw) @ ry3(pitch) @ rx3(roll)


def rot2eul(rot) -> np.ndarray:
    """Roll, pitch and yaw of a rotation matrix."""
    r = _matrix(rot)
    roll = math.atan2(r[2, 1], r[2, 2])
    pitch = math.atan2(-r[2, 0], math.sqrt(r[2, 1] ** 2 + r[2, 2] ** 2))
    yaw = math.atan2(r[1, 0], r[0, 0])
    return np.array([roll, pitch, yaw])


def rot2quat(rot) -> np.ndarray:
    """Quaternion ``(w, x, y, z)`` of a rotation matrix."""
    r = _matrix(rot)
    diag_sum = _diag_sum(r)
    if diag_sum > 0.0:
        t = math.sqrt(diag_sum + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        return np.array(
            [
                w,
                (r[2, 1] - r[1, 2]) * t,
                (r[0, 2] - r[2, 0]) * t,
                (r[1, 0] - r[0, 1]) * t,
            ]
        )
    i = 0
    if r[1, 1] > r[0, 0]:
        i = 1
    if r[2, 2] > r[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3
    t = math.sqrt(r[i, i] - r[j, j] - r[k, k] + 1.0)
    xyz = np.zeros(3)
    xyz[i] = 0.5 * t
    t = 0.5 / t
    w = (r[k, j] - r[j, k]) * t
    xyz[j] = (r[j, i] + r[i, j]) * t
    xyz[k] = (r[k, i] + r[i, k]) * t
    return np.array([w, *xyz])


def quat2rot(quat) -> np.ndarray:
    """Rotation matrix of a unit quaternion ``(w, x, y, z)``."""
    w, x, y, z = _vector(quat)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ]
    )


def eul2quat(roll, pitch, yaw) -> np.ndarray:
    """Quaternion ``(w, x, y, z)`` of roll, pitch and yaw angles."""
    return rot2quat(eul2rot(roll, pitch, yaw))


def _is_diagonal(r: np.ndarray, precision: float) -> bool:
    max_diag = float(np.max(np.abs(np.diag(r))))
    off_diagonal = r - np.diag(np.diag(r))
    return bool(np.all(np.abs(off_diagonal) <= max_diag * precision))


def diff_rot(r_cur, r_des) -> np.ndarray:
    """Rotation vector (world frame) taking ``r_cur`` to ``r_des``."""
    r_cur = _matrix(r_cur)
    r = r_cur.T @ _matrix(r_des)
    diag = np.diag(r)
    if _is_diagonal(r, 1e-5) and float(np.sum(np.abs(diag))) - 3 < 1e-3:
        w = np.zeros(3)
    elif _is_diagonal(r, 1e-5):
        w = (diag + 1.0) * _PI_APPROX / 2.0
    else:
        axis = np.array(
            [r[2, 1] - r[1, 2], r[0, 2] - r[2, 0], r[1, 0] - r[0, 1]]
        )
        norm = np.linalg.norm(axis)
        angle = math.atan2(norm, _diag_sum(r) - 1.0)
        w = angle * axis / norm
    return r_cur @ w


def quat2axis_angle(quat) -> np.ndarray:
    """Axis and angle ``(ax, ay, az, angle)`` of a unit quaternion."""
    w, x, y, z = _vector(quat)
    angle = 2.0 * np.arccos(w)
    s = np.sqrt(1.0 - w * w)
    if s < 1e-8:
        return np.array([x, y, 1.0, angle])
    return np.array([x / s, y / s, z / s, angle])


def int_quat(quat, w) -> np.ndarray:
    """Apply the body-frame rotation vector ``w`` to ``quat``."""
    q = _vector(quat)
    r_cur = quat2rot(q / np.linalg.norm(q))
    w = _vector(w)
    r_inc = np.eye(3)
    theta = float(np.linalg.norm(w))
    if theta > 1e-4:
        n = w / theta
        a = np.array(
            [
                [0.0, -n[2], n[1]],
                [n[0], 0.0, -n[0]],
                [-n[1], n[0], 0.0],
            ]
        )
        r_inc = np.eye(3) + a * math.sin(theta) + (a @ a) * (1 - math.cos(theta))
    return rot2quat(r_cur @ r_inc)


def cross_product_matrix(a) -> np.ndarray:
    """Skew-symmetric matrix ``[a]x`` so that ``[a]x b == a x b``."""
    x, y, z = _vector(a)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def ramp(u, target, increment) -> float:
    """Move ``u`` towards ``target`` by at most ``increment``."""
    if abs(u - target) < increment:
        return target
    if u < target - increment:
        return u + increment
    if u > target + increment:
        return u - increment
    return target


def limit(value, upper, lower) -> float:
    """Clamp ``value`` to ``[lower, upper]``; the lower bound wins on conflict."""
    if value > upper:
        value = upper
    if value < lower:
        value = lower
    return value


def sign(x) -> float:
    """Sign of ``x``: 1.0, -1.0 or 0."""
    if x > 0:
        return 1.0
    if x < 0:
        return -1.0
    return 0.0