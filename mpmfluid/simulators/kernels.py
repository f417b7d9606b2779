# --------------------------------------------------------------------------------
# Copyright (c) 2025 Krushang Gabani
# All rights reserved.
#
# Shared Taichi functions for the MLS-MPM transfers: quadratic B-spline
# weights and flattened grid addressing.
#
# Author: Krushang Gabani
# Date: July 7, 2025
# --------------------------------------------------------------------------------

import taichi as ti


@ti.func
def quadratic_weights(x):
    """
    Quadratic B-spline weights for the three cells at offsets -1, 0, +1 from
    the base cell, where x in [-0.5, 0.5] is the particle's offset from the
    base cell center. The weights are non-negative and sum to one.
    """
    return ti.Vector([0.5 * (0.5 - x) ** 2,
                      0.75 - x ** 2,
                      0.5 * (0.5 + x) ** 2])


@ti.func
def in_grid(cell, n_grid):
    return 0 <= cell[0] < n_grid and 0 <= cell[1] < n_grid


@ti.func
def flat_index(cell, n_grid):
    # row-major by x: i = x * N + y
    return cell[0] * n_grid + cell[1]
