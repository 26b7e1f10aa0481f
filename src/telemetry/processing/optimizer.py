"""
Linear efficiency/ROI heuristics for irrigation, fertilizer and harvest timing.

Every result uses the same formula: the improvement in efficiency points is
turned into monthly savings with a per-intervention factor, and
roi = estimated_savings * 12 / implementation_cost.
None means there was nothing to optimize.
"""
from typing import List, Optional, Sequence

from telemetry.models.analysis_data import OptimizationResult, OptimizationType
from telemetry.models.history_data import HarvestRecord, ListingRecord, NutrientAnalysis
from telemetry.models.sensor_data import Sensor

MONTHS_PER_YEAR = 12

IRRIGATION_BASELINE = 75
IRRIGATION_BONUS = 15
IRRIGATION_SAVINGS_FACTOR = 0.5
IRRIGATION_COST = 500

FERTILIZER_BASELINE = 70
FERTILIZER_BONUS = 12
FERTILIZER_SAVINGS_FACTOR = 0.8
FERTILIZER_COST = 800

HARVEST_BASELINE = 65
HARVEST_BONUS = 10
HARVEST_SAVINGS_FACTOR = 1.2
HARVEST_COST = 1200


def _build_result(kind: OptimizationType, baseline: float, optimized: float,
                  recommendations: List[str], savings_factor: float, cost: float) -> OptimizationResult:
    improvement = optimized - baseline
    estimated_savings = improvement * savings_factor
    return OptimizationResult(
        type=kind,
        current_efficiency=baseline,
        optimized_efficiency=optimized,
        improvement=improvement,
        recommendations=recommendations,
        estimated_savings=estimated_savings,
        implementation_cost=cost,
        roi=estimated_savings * MONTHS_PER_YEAR / cost,
    )


def optimize_irrigation(soil_sensors: Sequence[Sensor]) -> Optional[OptimizationResult]:
    if not soil_sensors:
        return None
    return _build_result(
        OptimizationType.IRRIGATION,
        IRRIGATION_BASELINE,
        IRRIGATION_BASELINE + IRRIGATION_BONUS,
        ["Implement smart irrigation scheduling", "Use soil moisture data for optimization"],
        IRRIGATION_SAVINGS_FACTOR,
        IRRIGATION_COST,
    )


def optimize_fertilizer(soil_sensors: Sequence[Sensor],
                        nutrient_analyses: Sequence[NutrientAnalysis]) -> Optional[OptimizationResult]:
    if not soil_sensors and not nutrient_analyses:
        return None
    # Nutrient analyses alone keep the baseline
    optimized = FERTILIZER_BASELINE
    recommendations: List[str] = []
    if soil_sensors:
        optimized += FERTILIZER_BONUS
        recommendations = ["Implement precision fertilization", "Use soil sensor data for targeted application"]
    return _build_result(
        OptimizationType.FERTILIZER,
        FERTILIZER_BASELINE,
        optimized,
        recommendations,
        FERTILIZER_SAVINGS_FACTOR,
        FERTILIZER_COST,
    )


def optimize_harvest(harvest_history: Sequence[HarvestRecord],
                     listing_history: Sequence[ListingRecord]) -> Optional[OptimizationResult]:
    # listing_history does not move the result
    if not harvest_history:
        return None
    return _build_result(
        OptimizationType.HARVEST,
        HARVEST_BASELINE,
        HARVEST_BASELINE + HARVEST_BONUS,
        ["Optimize harvest timing for better quality", "Implement early harvest for premium markets"],
        HARVEST_SAVINGS_FACTOR,
        HARVEST_COST,
    )
