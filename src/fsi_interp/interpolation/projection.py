"""
Point-to-face projection with interpolation weights.

Each projection returns the point of a face closest to a query point (clamped
to the face) together with the values of the face's linear shape functions at
that point. The weights always sum to one, so a constant nodal field is
reproduced exactly at the projected location.

Supported faces, by node count:

- 2 nodes: straight segment, weights ``(1 - t, t)``
- 3 nodes: triangle, barycentric weights
- 4 nodes: bilinear quadrilateral (nodes ordered counter-clockwise)::

    3-------2
    |       |
    |       |
    0-------1
"""

from typing import NamedTuple, Optional, Sequence

import numpy as np

# Relative tolerance below which a face is considered degenerate
DEGENERATE_TOL = 1.0e-14


class Projection(NamedTuple):
    """Closest point on a face and its shape-function weights."""

    point: np.ndarray
    weights: np.ndarray
    distance2: float


def _cross_norm(u: np.ndarray, v: np.ndarray) -> float:
    """Norm of ``u x v`` for 2D or 3D vectors."""
    if u.shape[0] == 2:
        return abs(u[0] * v[1] - u[1] * v[0])
    return float(np.linalg.norm(np.cross(u, v)))


def _result(p: np.ndarray, point: np.ndarray, weights) -> Projection:
    weights = np.asarray(weights, dtype=float)
    return Projection(point, weights, float(np.sum((point - p) ** 2)))


def project_to_segment(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> Optional[Projection]:
    """
    Project a point onto the segment ``[a, b]``.

    Returns None for a zero-length segment.
    """
    edge = b - a
    length2 = float(edge @ edge)
    if length2 == 0.0 or not np.isfinite(length2):
        return None
    t = float(np.clip((p - a) @ edge / length2, 0.0, 1.0))
    return _result(p, a + t * edge, (1.0 - t, t))


def project_to_triangle(
    p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray
) -> Optional[Projection]:
    """
    Closest point of triangle ``abc`` to ``p`` and its barycentric weights.

    Follows the Voronoi-region classification of the query point (vertex,
    edge or face region). Returns None for a zero-area triangle.
    """
    ab = b - a
    ac = c - a
    scale = max(float(ab @ ab), float(ac @ ac))
    if scale == 0.0 or _cross_norm(ab, ac) <= DEGENERATE_TOL * scale:
        return None

    ap = p - a
    d1 = ab @ ap
    d2 = ac @ ap
    if d1 <= 0.0 and d2 <= 0.0:
        return _result(p, a.copy(), (1.0, 0.0, 0.0))

    bp = p - b
    d3 = ab @ bp
    d4 = ac @ bp
    if d3 >= 0.0 and d4 <= d3:
        return _result(p, b.copy(), (0.0, 1.0, 0.0))

    vc = d1 * d4 - d3 * d2
    if vc <= 0.0 and d1 >= 0.0 and d3 <= 0.0:
        v = d1 / (d1 - d3)
        return _result(p, a + v * ab, (1.0 - v, v, 0.0))

    cp = p - c
    d5 = ab @ cp
    d6 = ac @ cp
    if d6 >= 0.0 and d5 <= d6:
        return _result(p, c.copy(), (0.0, 0.0, 1.0))

    vb = d5 * d2 - d1 * d6
    if vb <= 0.0 and d2 >= 0.0 and d6 <= 0.0:
        w = d2 / (d2 - d6)
        return _result(p, a + w * ac, (1.0 - w, 0.0, w))

    va = d3 * d6 - d5 * d4
    if va <= 0.0 and (d4 - d3) >= 0.0 and (d5 - d6) >= 0.0:
        w = (d4 - d3) / ((d4 - d3) + (d5 - d6))
        return _result(p, b + w * (c - b), (0.0, 1.0 - w, w))

    denom = 1.0 / (va + vb + vc)
    v = vb * denom
    w = vc * denom
    return _result(p, a + v * ab + w * ac, (1.0 - v - w, v, w))


def shape_functions_quad(xi: float, eta: float) -> np.ndarray:
    """Bilinear shape functions

    N0 = 0.25(1 - xi)(1 - eta)
    N1 = 0.25(1 + xi)(1 - eta)
    N2 = 0.25(1 + xi)(1 + eta)
    N3 = 0.25(1 - xi)(1 + eta)
    """
    return 0.25 * np.array([
        (1 - xi) * (1 - eta),
        (1 + xi) * (1 - eta),
        (1 + xi) * (1 + eta),
        (1 - xi) * (1 + eta),
    ])


def shape_function_derivatives_quad(xi: float, eta: float):
    """Derivatives of the bilinear shape functions with respect to xi and eta."""
    dN_dxi = 0.25 * np.array([-(1 - eta), (1 - eta), (1 + eta), -(1 + eta)])
    dN_deta = 0.25 * np.array([-(1 - xi), -(1 + xi), (1 + xi), (1 - xi)])
    return dN_dxi, dN_deta


def project_to_quad(
    p: np.ndarray, corners: np.ndarray, max_iter: int = 25, tol: float = 1.0e-12
) -> Optional[Projection]:
    """
    Closest point of a bilinear quadrilateral to ``p``.

    The natural coordinates are found by a Gauss-Newton iteration on
    ``|x(xi, eta) - p|^2`` clamped to ``[-1, 1]^2``. The four edges are
    straight lines, so their exact segment projections are compared as well
    and the closest candidate is kept.

    Returns None for a quadrilateral with zero area.
    """
    diag1 = corners[2] - corners[0]
    diag2 = corners[3] - corners[1]
    scale = max(float(diag1 @ diag1), float(diag2 @ diag2))
    if scale == 0.0 or _cross_norm(diag1, diag2) <= DEGENERATE_TOL * scale:
        return None

    xi = eta = 0.0
    for _ in range(max_iter):
        N = shape_functions_quad(xi, eta)
        dN_dxi, dN_deta = shape_function_derivatives_quad(xi, eta)
        residual = N @ corners - p
        J = np.column_stack((dN_dxi @ corners, dN_deta @ corners))
        JtJ = J.T @ J
        if abs(np.linalg.det(JtJ)) <= DEGENERATE_TOL * scale * scale:
            break
        step = np.linalg.solve(JtJ, -J.T @ residual)
        xi_new = float(np.clip(xi + step[0], -1.0, 1.0))
        eta_new = float(np.clip(eta + step[1], -1.0, 1.0))
        converged = abs(xi_new - xi) + abs(eta_new - eta) < tol
        xi, eta = xi_new, eta_new
        if converged:
            break

    N = shape_functions_quad(xi, eta)
    best = _result(p, N @ corners, N)

    for i in range(4):
        j = (i + 1) % 4
        edge = project_to_segment(p, corners[i], corners[j])
        if edge is not None and edge.distance2 < best.distance2:
            weights = np.zeros(4)
            weights[i], weights[j] = edge.weights
            best = Projection(edge.point, weights, edge.distance2)

    return best


def project_to_face(p: Sequence[float], corners: Sequence[Sequence[float]]) -> Optional[Projection]:
    """
    Project a point onto a face given by its corner coordinates.

    Parameters
    ----------
    p : array-like, shape (dim,)
        Query point.
    corners : array-like, shape (n_nodes, dim)
        Face corner coordinates, in face order (2, 3 or 4 nodes).

    Returns
    -------
    Projection or None
        None if the face is degenerate.

    Raises
    ------
    ValueError
        If the face has an unsupported number of nodes.
    """
    p = np.asarray(p, dtype=float)
    corners = np.asarray(corners, dtype=float)
    n_nodes = corners.shape[0]
    if n_nodes == 2:
        return project_to_segment(p, corners[0], corners[1])
    if n_nodes == 3:
        return project_to_triangle(p, corners[0], corners[1], corners[2])
    if n_nodes == 4:
        return project_to_quad(p, corners)
    raise ValueError(f"Unsupported interface face with {n_nodes} nodes")
