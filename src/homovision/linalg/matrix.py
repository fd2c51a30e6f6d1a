"""
Dense linear-algebra primitives used by the homography estimator.

Matrices are 2-D float64 numpy arrays.  Every routine returns a new array and
leaves its arguments untouched; shape incompatibilities are programming
errors and raise :class:`DimensionMismatchError`.
"""

import numpy as np

from homovision.utils.errors import DimensionMismatchError, FailureReason, Result

# Magnitude below which a pivot, determinant or homogeneous weight is zero.
PIVOT_EPS = 1e-9


def as_matrix(values) -> np.ndarray:
    """Convert *values* to a new 2-D float64 array.

    Raises
    ------
    DimensionMismatchError
        If *values* is ragged or not two-dimensional.
    """
    try:
        A = np.array(values, dtype=float)
    except ValueError as exc:
        raise DimensionMismatchError(f"Ragged matrix rows: {exc}") from exc
    if A.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2-D matrix, got {A.ndim}-D input")
    return A


def gaussian_elimination(A) -> np.ndarray:
    """Reduce *A* to row-echelon form with partial pivoting.

    For each pivot column the row with the largest absolute entry at or below
    the current pivot row is swapped into place and used to eliminate every
    entry beneath it.  A column whose best candidate is smaller than
    ``PIVOT_EPS`` has no usable pivot; it is skipped without elimination and
    the pivot row stays where it is, so the rank deficiency shows up as a
    vanishing diagonal entry instead of an error.

    Parameters
    ----------
    A : array_like
        m x n matrix.  Not modified.

    Returns
    -------
    np.ndarray
        m x n row-echelon copy of *A*.
    """
    B = as_matrix(A)
    m, n = B.shape

    h = 0  # pivot row
    k = 0  # pivot column
    while h < m and k < n:
        i_max = h + int(np.argmax(np.abs(B[h:, k])))

        if abs(B[i_max, k]) < PIVOT_EPS:
            k += 1
            continue

        if i_max != h:
            B[[h, i_max]] = B[[i_max, h]]

        for i in range(h + 1, m):
            f = B[i, k] / B[h, k]
            B[i, k] = 0.0
            B[i, k + 1:] -= B[h, k + 1:] * f

        h += 1
        k += 1

    return B


def multiply(A, B) -> np.ndarray:
    """Return the matrix product ``A @ B``.

    Raises
    ------
    DimensionMismatchError
        If the column count of *A* differs from the row count of *B*.
    """
    A = as_matrix(A)
    B = as_matrix(B)
    if A.shape[1] != B.shape[0]:
        raise DimensionMismatchError(
            f"Cannot multiply {A.shape[0]}x{A.shape[1]} by {B.shape[0]}x{B.shape[1]}"
        )
    return A @ B


def transpose(A) -> np.ndarray:
    """Return a new matrix with the row and column indices of *A* swapped."""
    return np.ascontiguousarray(as_matrix(A).T)


def determinant_3x3(m: np.ndarray) -> float:
    # cofactor expansion along the first row
    return (m[0, 0] * (m[1, 1] * m[2, 2] - m[2, 1] * m[1, 2])
            - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
            + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]))


def invert_3x3(A) -> Result:
    """Invert a 3 x 3 matrix with the closed-form adjugate.

    Parameters
    ----------
    A : array_like
        3 x 3 matrix.

    Returns
    -------
    Result
        ``ok`` with the inverse as *value*, or a failure with reason
        ``NOT_INVERTIBLE`` when ``|det(A)| < PIVOT_EPS``.

    Raises
    ------
    DimensionMismatchError
        If *A* is not 3 x 3.
    """
    m = as_matrix(A)
    if m.shape != (3, 3):
        raise DimensionMismatchError(
            f"invert_3x3 needs a 3x3 matrix, got {m.shape[0]}x{m.shape[1]}"
        )

    det = determinant_3x3(m)
    if abs(det) < PIVOT_EPS:
        return Result.failure(FailureReason.NOT_INVERTIBLE,
                              f"Matrix is not invertible (det={det:.3e})")

    inv_det = 1.0 / det
    adj = np.array([
        [m[1, 1] * m[2, 2] - m[2, 1] * m[1, 2],
         m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2],
         m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1]],
        [m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2],
         m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0],
         m[1, 0] * m[0, 2] - m[0, 0] * m[1, 2]],
        [m[1, 0] * m[2, 1] - m[2, 0] * m[1, 1],
         m[2, 0] * m[0, 1] - m[0, 0] * m[2, 1],
         m[0, 0] * m[1, 1] - m[1, 0] * m[0, 1]],
    ], dtype=float)
    return Result.success(adj * inv_det)


def multiply_matrix_vector(A, v) -> np.ndarray:
    """Return ``A @ v`` for an m x n matrix and a length-n vector.

    Raises
    ------
    DimensionMismatchError
        If the column count of *A* differs from ``len(v)``.
    """
    A = as_matrix(A)
    v = np.asarray(v, dtype=float)
    if v.ndim != 1 or A.shape[1] != v.shape[0]:
        raise DimensionMismatchError(
            f"Cannot multiply {A.shape[0]}x{A.shape[1]} matrix by vector of "
            f"shape {v.shape}"
        )
    return A @ v
