from .geodetic_length_thickness import GeodeticLengthThicknessFeature
from .ngtdm_features import NGTDMFeatures

__all__ = ["GeodeticLengthThicknessFeature", "NGTDMFeatures"]
