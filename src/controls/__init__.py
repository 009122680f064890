from .curve_controls import CurveControls, CurveMode, VenueControlState

__all__ = ["CurveControls", "CurveMode", "VenueControlState"]
