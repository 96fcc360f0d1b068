"""Demo scenario endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.optimization import OptimizationRequest, OptimizationResponse, PointModel, ScenarioModel
from ...services.outputs.formatter import scenario_to_model
from ...services.scenarios import list_scenarios, load_scenario
from .optimize import run_optimization

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


def _get_scenario_or_404(name: str):
    try:
        return load_scenario(name)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Scenario '{name}' not found") from exc


@router.get("", response_model=list[ScenarioModel])
def scenarios() -> list[ScenarioModel]:
    return [scenario_to_model(load_scenario(name)) for name in list_scenarios()]


@router.get("/{name}", response_model=ScenarioModel)
def scenario(name: str) -> ScenarioModel:
    return scenario_to_model(_get_scenario_or_404(name))


@router.post("/{name}/optimize", response_model=OptimizationResponse)
def optimize_scenario(
    name: str,
    use_road_network: bool | None = Query(default=None, description="Use OSRM road distances."),
) -> OptimizationResponse:
    loaded = _get_scenario_or_404(name)
    payload = OptimizationRequest(
        hub=PointModel.from_geo_point(loaded.hub),
        silos=[PointModel.from_geo_point(point) for point in loaded.silos],
        trucks=[PointModel.from_geo_point(point) for point in loaded.trucks],
        use_road_network=use_road_network,
    )
    return run_optimization(payload)
