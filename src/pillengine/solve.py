# src/pillengine/solve.py
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Iterable, Mapping, Union

from .config import DEFAULT_CONFIG, SolverConfig
from .errors import InvalidInput
from .formatting import format_options
from .ranking import rank_options
from .regimens import generate_options
from .schemas import SolveResponse, parse_request
from .types import CalculationInput, FinalOutput
from .validation import validate_input

logger = logging.getLogger(__name__)


def solve(calc_input: CalculationInput, *, config: SolverConfig | None = None,
          strict: bool = False) -> list[FinalOutput]:
    """
    Validate, search, rank and format: the whole pipeline for one request.

    Returns up to config.top_k regimens, best first, or [] when the request is
    invalid or no regimen lands within tolerance. With strict=True an invalid
    request raises InvalidInput instead of returning [].
    """
    config = config or DEFAULT_CONFIG
    try:
        validate_input(calc_input)
    except InvalidInput as e:
        if strict:
            raise
        logger.warning("Rejected calculation input: %s", e)
        return []

    options = generate_options(calc_input, config=config)
    ranked = rank_options(options, calc_input.weekly_dose, top_k=config.top_k)
    logger.debug("%d candidate(s), returning %d for %.2f mg/week",
                 len(options), len(ranked), calc_input.weekly_dose)
    return format_options(ranked, calc_input)


def solve_many(inputs: Iterable[CalculationInput], *, config: SolverConfig | None = None,
               max_workers: int | None = None) -> list[list[FinalOutput]]:
    """
    Solve independent requests in a thread pool.
    Results come back in input order; solves share no state.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(partial(solve, config=config), inputs))


def solve_json(payload: Union[str, bytes, Mapping[str, Any]], *, config: SolverConfig | None = None,
               strict: bool = False) -> str:
    """
    JSON in, JSON out. Invalid requests produce {"options": [], "error": "..."}
    unless strict=True, in which case InvalidInput propagates.
    """
    try:
        calc_input = validate_input(parse_request(payload))
    except InvalidInput as e:
        if strict:
            raise
        logger.warning("Rejected calculation request: %s", e)
        return SolveResponse(error=str(e)).model_dump_json()
    return SolveResponse.from_outputs(solve(calc_input, config=config, strict=True)).model_dump_json()
