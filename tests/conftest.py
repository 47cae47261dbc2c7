"""Pytest configuration and synthetic matrix photos.

Slow tests (full-resolution pipeline runs) are skipped unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)

The fixtures draw a disc's inner area: a dark hub hole, a bright mirror band
with engraved-looking text, and a darker label area outside the ring.
"""
import cv2
import numpy as np
import pytest

SIZE = 600
HUB_RADIUS = 50
CLEAR_RADIUS = 65
OUTER_RADIUS = 200

HUB_LEVEL = 20
BAND_LEVEL = 170
LABEL_LEVEL = 110
TEXT_LEVEL = 40


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests (full-resolution pipeline runs)",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped - pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def draw_matrix_image(size: int = SIZE, seed: int = 7) -> np.ndarray:
    """Grayscale disc center with engraved text in the ring band."""
    rng = np.random.default_rng(seed)
    center = (size // 2, size // 2)
    img = np.full((size, size), BAND_LEVEL, dtype=np.uint8)

    for row, y in enumerate(range(40, size - 20, 34)):
        text = f"839 27{row % 10}-2 0{row % 7} A1 IFPI L{100 + row}"
        cv2.putText(img, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.9, TEXT_LEVEL, 2, cv2.LINE_AA)

    cv2.circle(img, center, CLEAR_RADIUS, BAND_LEVEL, -1)
    cv2.circle(img, center, HUB_RADIUS, HUB_LEVEL, -1)

    ys, xs = np.ogrid[:size, :size]
    outside = (xs - center[0]) ** 2 + (ys - center[1]) ** 2 > OUTER_RADIUS ** 2
    img[outside] = LABEL_LEVEL

    noise = rng.normal(0, 4, img.shape)
    return np.clip(img.astype(np.float64) + noise, 0, 255).astype(np.uint8)


def add_glare(gray: np.ndarray) -> np.ndarray:
    """Saturated elliptical reflections inside the ring band."""
    glared = gray.copy()
    cx, cy = gray.shape[1] // 2, gray.shape[0] // 2
    for dx, dy in ((110, -40), (-90, 100), (30, 140)):
        cv2.ellipse(glared, (cx + dx, cy + dy), (22, 12), 30, 0, 360, 255, -1)
    return glared


@pytest.fixture
def matrix_gray() -> np.ndarray:
    return draw_matrix_image()


@pytest.fixture
def matrix_rgb(matrix_gray) -> np.ndarray:
    return cv2.cvtColor(matrix_gray, cv2.COLOR_GRAY2RGB)


@pytest.fixture
def glare_gray(matrix_gray) -> np.ndarray:
    return add_glare(matrix_gray)


@pytest.fixture
def flat_gray() -> np.ndarray:
    return np.full((200, 200), 128, dtype=np.uint8)


@pytest.fixture
def png_bytes(matrix_rgb) -> bytes:
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(matrix_rgb, cv2.COLOR_RGB2BGR))
    assert ok
    return encoded.tobytes()


@pytest.fixture
def ring_geometry() -> dict:
    """Known geometry of draw_matrix_image()."""
    return {"size": SIZE, "hub_radius": HUB_RADIUS, "outer_radius": OUTER_RADIUS}
