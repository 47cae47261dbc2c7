"""Central configuration for matrix/runout ring enhancement.

All tunable parameters are defined here with descriptive names.
These values can be adjusted to fine-tune enhancement and classification.
"""

# =============================================================================
# IMAGE INPUT
# =============================================================================

# Longest side of the working image (larger photos are downscaled first)
MAX_WORKING_DIMENSION = 1800

# Images smaller than this (either side) skip ring detection entirely
MIN_ANALYSIS_DIMENSION = 32

# =============================================================================
# ENHANCEMENT PARAMETERS (defaults and allowed ranges)
# =============================================================================

CLAHE_CLIP_LIMIT = 2.0
CLAHE_CLIP_LIMIT_RANGE = (1.0, 5.0)

# CLAHE tile edge length in pixels (only these sizes are supported)
CLAHE_TILE_SIZE = 16
CLAHE_TILE_SIZES = (8, 16, 24)

HIGHLIGHT_STRENGTH = 50
HIGHLIGHT_STRENGTH_RANGE = (0, 100)

UNSHARP_RADIUS = 0.6
UNSHARP_RADIUS_RANGE = (0.3, 1.2)

UNSHARP_AMOUNT = 1.0
UNSHARP_AMOUNT_RANGE = (0.0, 2.0)

# Adaptive threshold block size must be odd
ADAPTIVE_BLOCK_SIZE = 25
ADAPTIVE_BLOCK_SIZE_RANGE = (11, 51)

ADAPTIVE_C = 2
ADAPTIVE_C_RANGE = (-10, 10)

# =============================================================================
# RING LOCATION
# =============================================================================

# Longest side of the copy used for ring analysis
RING_ANALYSIS_SIZE = 400

# Candidate centers are searched within this fraction of the image around its center
RING_CENTER_SEARCH_RATIO = 0.15

# Number of candidate center positions per axis (grid search)
RING_CENTER_GRID_STEPS = 7

# Hub edge must lie within this band (fraction of the max usable radius)
RING_HUB_RADIUS_RANGE = (0.04, 0.45)

# Outer ring edge is capped at this multiple of the hub radius
RING_OUTER_TO_HUB_MAX_RATIO = 5.0

# Used when no outer edge is found beyond the hub
RING_OUTER_TO_HUB_DEFAULT_RATIO = 4.0

# Minimum radial brightness step (gray levels per pixel) that counts as an edge
RING_EDGE_GRADIENT_MIN = 8.0

# Angle-averaged derivative at which contrast confidence saturates
RING_EDGE_FULL_CONTRAST = 20.0

# Minimum confidence for accepting the circle fit
CIRCLE_FIT_MIN_CONFIDENCE = 0.5

# Number of rays for the contrast edge scan
EDGE_SCAN_RAYS = 48

# Minimum brightness step between neighbouring ray samples
EDGE_SCAN_STEP_MIN = 25

# Minimum confidence for accepting the edge scan
EDGE_SCAN_MIN_CONFIDENCE = 0.35

# Fallback annulus as fractions of half the shorter image side
FALLBACK_INNER_RATIO = 0.15
FALLBACK_OUTER_RATIO = 0.9

# ROI crop margin around the outer ring radius
ROI_MARGIN_RATIO = 0.1

# =============================================================================
# HIGHLIGHT SUPPRESSION
# =============================================================================

# Glare threshold drops by this many gray levels at full strength
HIGHLIGHT_THRESHOLD_SPAN = 60

# Threshold never drops below this image percentile
HIGHLIGHT_MIN_PERCENTILE = 90.0

# Clusters smaller than this (pixels) are treated as texture, not glare
HIGHLIGHT_MIN_CLUSTER_AREA = 9

# Dilation applied to the glare mask to cover the halo
HIGHLIGHT_DILATE_KERNEL = 5

# Inpainting neighbourhood radius
HIGHLIGHT_INPAINT_RADIUS = 5

# Gaussian feather applied to the blend alpha
HIGHLIGHT_FEATHER_SIGMA = 2.0

# =============================================================================
# DENOISING
# =============================================================================

DENOISE_MEDIAN_KERNEL = 3
DENOISE_BILATERAL_DIAMETER = 5
DENOISE_BILATERAL_SIGMA_COLOR = 25
DENOISE_BILATERAL_SIGMA_SPACE = 3

# =============================================================================
# ILLUMINATION NORMALIZATION
# =============================================================================

# Background is estimated on blocks of this size
ILLUMINATION_BLOCK_SIZE = 16

# Flat-field corrected images are centered on this gray level
ILLUMINATION_TARGET_MEAN = 128

# Percentiles stretched to the full range after correction
ILLUMINATION_STRETCH_PERCENTILES = (1.0, 99.0)

# Maximum contrast gain of the stretch
ILLUMINATION_MAX_GAIN = 4.0

# =============================================================================
# QUALITY ASSESSMENT
# =============================================================================

# Mean |Laplacian| that maps to sharpness 1.0
SHARPNESS_FULL_SCALE = 32.0

# Pixels at or above this level count as saturated glare
SATURATION_LEVEL = 245

# Saturated clusters smaller than this are ignored
GLARE_MIN_CLUSTER_AREA = 9

QUALITY_MIN_BRIGHTNESS = 0.15
QUALITY_MAX_BRIGHTNESS = 0.85
QUALITY_POOR_CONTRAST = 0.05
QUALITY_POOR_SHARPNESS = 0.03
QUALITY_FAIR_CONTRAST = 0.12
QUALITY_FAIR_SHARPNESS = 0.08
QUALITY_EXCELLENT_CONTRAST = 0.25
QUALITY_EXCELLENT_SHARPNESS = 0.15

# Reflection level is a percentage of image area
QUALITY_POOR_REFLECTION = 10.0
QUALITY_FAIR_REFLECTION = 1.0
QUALITY_EXCELLENT_REFLECTION = 0.25

# =============================================================================
# ZOOMED CROPS
# =============================================================================

# Longest side of any zoomed output
MAX_ZOOM_DIMENSION = 2400

# Ring crop half-size as a multiple of the outer ring radius
ZOOM_RING_MARGIN = 1.1
ZOOM_RING_FACTOR = 2.5
ZOOM_RING_UNSHARP = (0.5, 1.2, 2)

# IFPI crops reach this fraction of the way from the hub edge to the outer edge
ZOOM_IFPI_REACH = 0.40
ZOOM_IFPI_FACTOR = 3.0
ZOOM_IFPI_UNSHARP = (0.4, 1.5, 1)

SUPER_ZOOM_REACH = 0.15
SUPER_ZOOM_FACTOR = 5.0
SUPER_ZOOM_CLAHE = (3.5, 8)
SUPER_ZOOM_UNSHARP = (0.3, 2.0, 1)

# Directional emboss strength and adaptive boost
EMBOSS_STRENGTH = 0.5
EMBOSS_BOOST_HIGH = 0.4
EMBOSS_BOOST_LOW = 0.2
EMBOSS_DIFF_THRESHOLD = 10.0

# =============================================================================
# MATRIX PHOTO DETECTION
# =============================================================================

PHOTO_DETECTION_SIZE = 400
PHOTO_DETECTION_THRESHOLD = 0.40
PHOTO_FILENAME_BONUS = 0.15
PHOTO_COMBINATION_BONUS = 0.10
PHOTO_FILENAME_HINTS = (
    "matrix", "disc", "cd", "label", "plaat", "ring",
    "surface", "back", "bottom", "data", "runout",
)

PHOTO_FEATURE_WEIGHTS = {
    "hub_hole": 0.30,
    "central_dark_area": 0.20,
    "circular_structure": 0.20,
    "rainbow_reflection": 0.15,
    "reflective_surface": 0.10,
    "concentric_rings": 0.10,
}

# =============================================================================
# SEGMENT CLASSIFICATION
# =============================================================================

MATRIX_MIN_LENGTH = 4
MATRIX_MAX_LENGTH = 48

# Segments shorter than this are never classified as IFPI or matrix
MIN_SEGMENT_LENGTH = 3
