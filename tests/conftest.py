import numpy as np
import pytest


@pytest.fixture
def unit_square():
    vertices = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    indices = np.array([[0, 1, 2], [0, 2, 3]])
    return vertices, indices


@pytest.fixture
def square_with_hole():
    """[0,10]x[0,10] counter-clockwise, [4,6]x[4,6] hole clockwise."""
    vertices = np.array([
        [0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0],
        [4.0, 4.0], [6.0, 4.0], [6.0, 6.0], [4.0, 6.0],
    ])
    indices = np.array([[0, 1, 2], [0, 2, 3], [4, 6, 5], [4, 7, 6]])
    return vertices, indices


@pytest.fixture
def l_section():
    """4 x 3 angle with unit-thick legs, fanned from the corner vertex."""
    vertices = np.array([
        [0.0, 0.0], [4.0, 0.0], [4.0, 1.0], [1.0, 1.0], [1.0, 3.0], [0.0, 3.0],
    ])
    indices = np.array([[0, 1, 2], [0, 2, 3], [0, 3, 4], [0, 4, 5]])
    return vertices, indices
