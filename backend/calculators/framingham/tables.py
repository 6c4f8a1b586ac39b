"""
Framingham 10-year hard CHD risk point tables.

Source: NCEP ATP III (2001), Framingham point scores for men and women.

Cholesterol columns are in mg/dL; inputs in mmol/L are converted with
MMOL_TO_MG_DL before lookup. Smoking and total-cholesterol points depend on
the age band, so those rows carry one value per AGE_BANDS entry.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

MMOL_TO_MG_DL = 38.67

# Lower bounds of the ten 5-year age bands, 20-34 counted as one band
AGE_BAND_STARTS = (20, 35, 40, 45, 50, 55, 60, 65, 70, 75)

# Lower bounds of the decade bands used by cholesterol and smoking points:
# 20-39, 40-49, 50-59, 60-69, 70-79
AGE_BANDS = (20, 40, 50, 60, 70)

# Lower bounds (mg/dL) of total-cholesterol rows: <160, 160-199, ..., >=280
TC_ROW_STARTS = (0, 160, 200, 240, 280)

# Lower bounds (mmHg) of systolic rows: <120, 120-129, 130-139, 140-159, >=160
SBP_ROW_STARTS = (0, 120, 130, 140, 160)


@dataclass(frozen=True)
class PointTable:
    age: tuple[int, ...]
    total_cholesterol: tuple[tuple[int, ...], ...]  # [tc row][age band]
    smoker: tuple[int, ...]  # [age band]
    sbp_untreated: tuple[int, ...]
    sbp_treated: tuple[int, ...]
    # (minimum points, risk %) rows in ascending order of points
    risk: tuple[tuple[int, float], ...]


MEN = PointTable(
    age=(-9, -4, 0, 3, 6, 8, 10, 11, 12, 13),
    total_cholesterol=(
        (0, 0, 0, 0, 0),
        (4, 3, 2, 1, 0),
        (7, 5, 3, 1, 0),
        (9, 6, 4, 2, 1),
        (11, 8, 5, 3, 1),
    ),
    smoker=(8, 5, 3, 1, 1),
    sbp_untreated=(0, 0, 1, 1, 2),
    sbp_treated=(0, 1, 2, 2, 3),
    risk=(
        (0, 1), (5, 2), (7, 3), (8, 4), (9, 5), (10, 6), (11, 8),
        (12, 10), (13, 12), (14, 16), (15, 20), (16, 25), (17, 30),
    ),
)

WOMEN = PointTable(
    age=(-7, -3, 0, 3, 6, 8, 10, 12, 14, 16),
    total_cholesterol=(
        (0, 0, 0, 0, 0),
        (4, 3, 2, 1, 1),
        (8, 6, 4, 2, 1),
        (11, 8, 5, 3, 2),
        (13, 10, 7, 4, 2),
    ),
    smoker=(9, 7, 4, 2, 1),
    sbp_untreated=(0, 1, 2, 3, 4),
    sbp_treated=(0, 3, 4, 5, 6),
    risk=(
        (9, 1), (13, 2), (15, 3), (16, 4), (17, 5), (18, 6), (19, 8),
        (20, 11), (21, 14), (22, 17), (23, 22), (24, 27), (25, 30),
    ),
)


def _row(starts: tuple, value: float) -> int:
    """Index of the band containing value; values below the first band use it."""
    return max(bisect_right(starts, value) - 1, 0)


def age_band_index(age: float) -> int:
    return _row(AGE_BAND_STARTS, age)


def decade_band_index(age: float) -> int:
    return _row(AGE_BANDS, age)


def hdl_points(hdl_mg_dl: float) -> int:
    if hdl_mg_dl >= 60:
        return -1
    if hdl_mg_dl >= 50:
        return 0
    if hdl_mg_dl >= 40:
        return 1
    return 2


def total_cholesterol_points(table: PointTable, tc_mg_dl: float, age: float) -> int:
    return table.total_cholesterol[_row(TC_ROW_STARTS, tc_mg_dl)][decade_band_index(age)]


def sbp_points(table: PointTable, sbp: float, treated: bool) -> int:
    row = table.sbp_treated if treated else table.sbp_untreated
    return row[_row(SBP_ROW_STARTS, sbp)]


def risk_percent(table: PointTable, points: int) -> float:
    """Map a point total to 10-year risk, saturating at both ends of the table."""
    risk = table.risk[0][1]
    for minimum, percent in table.risk:
        if points >= minimum:
            risk = percent
    return risk
