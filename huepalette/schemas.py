"""
huepalette Schemas
Pydantic models for extraction options and the palette result.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SegmentName = Literal["foreground", "background"]
Temperature = Literal["warm", "cool", "neutral"]
SegmentationMethod = Literal["mask2former", "segformer", "fallback-luminance"]
QualityLevel = Literal["high", "medium", "low"]

HEX_PATTERN = r"^#[0-9A-F]{6}$"


class ExtractionOptions(BaseModel):
    """Caller options for a single extraction."""
    num_colors: Optional[int] = Field(
        None,
        ge=1,
        le=30,
        description="Requested palette size; None picks a size from pixel variance",
    )
    include_background: bool = Field(True, description="Keep background colors in the palette")
    generate_harmonies: bool = Field(True, description="Compute harmony colors per entry")


# ============================================================================
# ACCESSIBILITY
# ============================================================================

class ContrastResult(BaseModel):
    """WCAG contrast against one reference color."""
    ratio: float = Field(..., ge=1.0, le=21.0, description="Contrast ratio rounded to 0.1")
    wcag_aa_normal: bool
    wcag_aa_large: bool
    wcag_aaa_normal: bool
    wcag_aaa_large: bool


class APCAResult(BaseModel):
    on_white: int = Field(..., ge=0, le=100)
    on_black: int = Field(..., ge=0, le=100)


class SuggestedTextColor(BaseModel):
    hex: str = Field(..., pattern=HEX_PATTERN)
    reason: str = Field(..., description="Contrast margin, e.g. 'Higher contrast (8.6 vs 2.4)'")


class AccessibilityInfo(BaseModel):
    """Contrast summary for one palette color."""
    contrast_on_white: ContrastResult
    contrast_on_black: ContrastResult
    apca: APCAResult
    suggested_text_color: SuggestedTextColor


# ============================================================================
# HARMONY
# ============================================================================

class TintShade(BaseModel):
    level: int = Field(..., description="Step index times ten (10-40)")
    hex: str = Field(..., pattern=HEX_PATTERN)
    oklch: str = Field(..., description="CSS oklch() string")
    name: str = Field(..., description="e.g. 'Vivid Scarlet 300'")


class HarmonyColor(BaseModel):
    hex: str = Field(..., pattern=HEX_PATTERN)
    oklch: str
    name: str


class ColorHarmony(BaseModel):
    """Hue-rotated companions at the base color's lightness and chroma."""
    complementary: Optional[HarmonyColor] = None
    analogous: List[HarmonyColor] = Field(default_factory=list)
    triadic: List[HarmonyColor] = Field(default_factory=list)
    split_complementary: List[HarmonyColor] = Field(default_factory=list)


# ============================================================================
# FORMATS
# ============================================================================

class RGBValues(BaseModel):
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)


class OKLCHValues(BaseModel):
    l: float
    c: float
    h: float


class HSLValues(BaseModel):
    h: int
    s: int
    l: int


class HSBValues(BaseModel):
    h: int
    s: int
    b: int


class CMYKValues(BaseModel):
    c: int
    m: int
    y: int
    k: int


class LABValues(BaseModel):
    l: int
    a: int
    b: int


class LCHValues(BaseModel):
    l: int
    c: int
    h: int


class RGBFormat(BaseModel):
    css: str
    values: RGBValues


class OKLCHFormat(BaseModel):
    css: str
    values: OKLCHValues


class HSLFormat(BaseModel):
    css: str
    values: HSLValues


class HSBFormat(BaseModel):
    css: str
    values: HSBValues


class CMYKFormat(BaseModel):
    css: str
    values: CMYKValues


class LABFormat(BaseModel):
    css: str
    values: LABValues


class LCHFormat(BaseModel):
    css: str
    values: LCHValues


class ColorFormats(BaseModel):
    """Every representation of one color, each with a CSS-style string."""
    hex: str = Field(..., pattern=HEX_PATTERN)
    rgb: RGBFormat
    oklch: OKLCHFormat
    hsl: HSLFormat
    hsb: HSBFormat
    cmyk: CMYKFormat
    lab: LABFormat
    lch: LCHFormat


# ============================================================================
# PALETTE ENTRY
# ============================================================================

class ColorSource(BaseModel):
    segment: SegmentName
    category: Optional[str] = None
    pixel_coverage: float = Field(..., ge=0.0, le=1.0, description="Share of sampled pixels")
    confidence: float = Field(..., ge=0.0, le=1.0)


class ColorMetadata(BaseModel):
    temperature: Temperature
    nearest_css_color: str
    pantone_approximation: Optional[str] = None
    css_variable_name: str


class ExtractedColor(BaseModel):
    """Final palette entry. Immutable once built; name is unique within its palette."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., pattern=r"^color_\d{3,}$")
    name: str
    source: ColorSource
    formats: ColorFormats
    accessibility: AccessibilityInfo
    tints: List[TintShade]
    shades: List[TintShade]
    harmony: ColorHarmony
    metadata: ColorMetadata


# ============================================================================
# RESULT
# ============================================================================

class SegmentShare(BaseModel):
    pixel_percentage: float = Field(..., ge=0.0, le=100.0)


class SegmentInfo(BaseModel):
    foreground: SegmentShare
    background: SegmentShare
    categories: List[str] = Field(default_factory=list)
    method: SegmentationMethod
    quality: QualityLevel


class SegmentationQualityInfo(BaseModel):
    method: SegmentationMethod
    confidence: QualityLevel
    foreground_detected: bool
    used_fallback: bool


class ExtractionConfidence(BaseModel):
    overall: float = Field(..., ge=0.0, le=1.0)
    color_separation: float = Field(..., ge=0.0, le=1.0)
    naming_quality: float = Field(..., ge=0.0, le=1.0)


class ExtractionMetadata(BaseModel):
    """Read-only summary computed from the finished palette."""
    processing_time_ms: int = Field(..., ge=0)
    color_count: int = Field(..., ge=0)
    algorithm: Literal["kmeans++", "weighted-kmeans"] = "weighted-kmeans"
    color_diversity: float = Field(..., ge=0.0, le=1.0)
    average_saturation: float = Field(..., ge=0.0, le=100.0)
    dominant_temperature: Temperature
    suggested_usage: str
    segmentation_quality: SegmentationQualityInfo
    extraction_confidence: ExtractionConfidence


class ImageDimensions(BaseModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class SourceImage(BaseModel):
    filename: Optional[str] = None
    dimensions: ImageDimensions
    processed_at: str = Field(..., description="ISO-8601 UTC timestamp")


class ColorPaletteResult(BaseModel):
    """Everything one extraction produces."""
    id: str
    source_image: SourceImage
    segments: SegmentInfo
    palette: List[ExtractedColor]
    metadata: ExtractionMetadata
