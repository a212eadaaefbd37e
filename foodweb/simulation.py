# foodweb/simulation.py
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import FoodWebError, InvalidConfiguration, NumericalDivergence
from .fluxes import Fluxes, GrazingMode, evaluate_fluxes
from .grazing import InteractionTables, interactions_from_config
from .models.group import GuildRole
from .models.state import OutputSample, SimulationState, SummaryRecord, SweepRun
from .sampler import OutputSampler
from .traits import TraitTable, traits_from_config
from .utils.config import SweepConfig

# Columns per guild in the exported summary (bmass0..3 / hmass0..3)
SUMMARY_WIDTH = 4


class ModelTables:
    """Trait and grazing tables shared read-only by every sweep run."""

    def __init__(self, traits: TraitTable, interactions: InteractionTables):
        if interactions.size != len(traits):
            raise InvalidConfiguration(
                f"grazing tables are {interactions.size}x{interactions.size} for {len(traits)} groups"
            )
        self.traits = traits
        self.interactions = interactions

    @property
    def n_groups(self) -> int:
        return len(self.traits)


def build_tables(cfg: SweepConfig) -> ModelTables:
    cfg.validate()
    return ModelTables(traits_from_config(cfg), interactions_from_config(cfg))


def euler_step(state: SimulationState, fluxes: Fluxes, dt: float) -> SimulationState:
    """Forward Euler update in place. Negative biomass is left as is."""
    state.biomass = state.biomass + fluxes.dbiomass_dt * dt
    state.nitrate = state.nitrate + fluxes.dnitrate_dt * dt
    state.elapsed_time = state.elapsed_time + dt
    return state


def format_progress(sample: OutputSample, n_groups_shown: int = 4) -> str:
    parts = [f"Time: {sample.time:.0f}", f"Nitrate: {sample.nitrate:.2E}"]
    for i, b in enumerate(sample.biomass[:n_groups_shown]):
        parts.append(f"Biomass grp{i}:{b:.2E}")
    return "; ".join(parts)


def summarize_run(
    supply_rate: float,
    last: OutputSample,
    traits: TraitTable,
    width: int = SUMMARY_WIDTH,
) -> SummaryRecord:
    autotrophs = traits.indices(GuildRole.AUTOTROPH)[:width]
    heterotrophs = traits.indices(GuildRole.HETEROTROPH)[:width]
    return SummaryRecord(
        supply_rate,
        [last.biomass[i] for i in autotrophs],
        [last.biomass[i] for i in heterotrophs],
    )


def run_level(
    cfg: SweepConfig,
    tables: ModelTables,
    level: int,
    *,
    supply_rate: Optional[float] = None,
    log: Callable[[str], None] = print,
    verbose: bool = False,
) -> SweepRun:
    """Integrate one nitrate-supply level from the seed state to max_time.

    `supply_rate` overrides the level formula (e.g. 0.0 for a starvation run).
    Errors raised inside the loop carry the level and the step they stopped at.
    """
    rate = cfg.supply_rate(level) if supply_rate is None else float(supply_rate)
    mode = GrazingMode.from_value(cfg.holling)
    traits, interactions = tables.traits, tables.interactions

    state = SimulationState.seeded(cfg.seed_biomass, cfg.seed_scale, cfg.seed_nitrate)
    sampler = OutputSampler(cfg.n_step_out, cfg.n_step_out_max)
    dt = cfg.dt
    threshold = cfg.extinction_threshold

    step = 0
    try:
        for step in range(cfg.n_step_max):
            fluxes = evaluate_fluxes(state, traits, interactions, mode, rate, threshold=threshold)
            euler_step(state, fluxes, dt)
            if cfg.check_finite and not state.is_finite():
                raise NumericalDivergence(f"non-finite state at t={state.elapsed_time:.6g}")
            sample = sampler.observe(state, fluxes)
            if sample is not None and verbose:
                log(format_progress(sample, cfg.progress_groups))
    except FoodWebError as e:
        e.sweep_index = level
        e.step = step
        raise

    summary = None
    if sampler.samples:
        summary = summarize_run(rate, sampler.samples[-1], traits)
    return SweepRun(level, rate, sampler.samples, state, summary)


class SweepResult:
    def __init__(self):
        self.runs: List[SweepRun] = []
        self.failures: List[Tuple[int, FoodWebError]] = []

    @property
    def records(self) -> List[SummaryRecord]:
        return [r.summary for r in self.runs if r.summary is not None]

    @property
    def ok(self) -> bool:
        return not self.failures


def run_sweep(
    cfg: SweepConfig,
    tables: Optional[ModelTables] = None,
    *,
    levels: Optional[Sequence[int]] = None,
    workers: int = 1,
    stop_on_error: bool = False,
    log: Callable[[str], None] = print,
    verbose: bool = True,
) -> SweepResult:
    """Run every supply level from a fresh state and collect one record each.

    A failing level is logged and recorded in `failures`; the remaining levels
    still run unless `stop_on_error` is set. With `workers > 1` levels run on a
    thread pool; results are kept in level order.
    """
    if tables is None:
        tables = build_tables(cfg)
    else:
        cfg.validate()
        if tables.n_groups != cfg.n_groups:
            raise InvalidConfiguration(f"tables built for {tables.n_groups} groups, config has {cfg.n_groups}")
    if levels is None:
        levels = list(range(cfg.sweep_count))
    outside = [lvl for lvl in levels if not 0 <= lvl < cfg.sweep_count]
    if outside:
        raise InvalidConfiguration(f"levels {outside} outside 0..{cfg.sweep_count - 1}")

    def one(level: int) -> SweepRun:
        if verbose:
            log(f"[sweep] level {level} nsupply={cfg.supply_rate(level):.4f}")
        run = run_level(cfg, tables, level, log=log, verbose=verbose)
        if verbose:
            log(f"[sweep] level {level} done t={run.final_state.elapsed_time:.6g} samples={len(run.samples)}")
        return run

    result = SweepResult()
    if workers <= 1:
        for level in levels:
            try:
                result.runs.append(one(level))
            except FoodWebError as e:
                log(f"[warn] level {level} failed: {e}")
                result.failures.append((level, e))
                if stop_on_error:
                    raise
        return result

    with ThreadPoolExecutor(max_workers=int(workers)) as pool:
        futures = [(level, pool.submit(one, level)) for level in levels]
        for level, fut in futures:
            try:
                result.runs.append(fut.result())
            except FoodWebError as e:
                log(f"[warn] level {level} failed: {e}")
                result.failures.append((level, e))
                if stop_on_error:
                    for _, other in futures:
                        other.cancel()
                    raise
    return result
