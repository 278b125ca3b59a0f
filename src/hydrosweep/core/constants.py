"""Physical constants and unit conversions.

All coefficient math is carried out in US customary units (lbf, ft, slug)
because the engine reports forces in lbf and moments in lbf-ft.
"""

from __future__ import annotations

# Water density (slug/ft^3)
RHO_WATER = 1.94

# Unit conversions
MPH_TO_FTS = 1.467
IN_TO_FT = 1.0 / 12.0

# ft-lbf/s per horsepower
FT_LBF_S_PER_HP = 550.0

# Degrees per full revolution
DEG_PER_REV = 360.0
