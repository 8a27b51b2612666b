"""Stats router — exposes the inference engine over HTTP.

Returns posteriors, P(B > A), expected loss, credible intervals, the
evidence ratio and a recommendation for a pair of observations, plus the
sequential scan, posterior predictive and sample-size planning.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, model_validator

from bayesab.core.config import settings
from bayesab.stats.bayesian import BetaParams, Observation
from bayesab.stats.decisions import LossResult, recommend
from bayesab.stats.engine import InferenceEngine
from bayesab.stats.errors import StatsError
from bayesab.stats.planning import required_sample_size
from bayesab.stats.priors import PRIOR_PRESETS, PriorConfig, custom_prior, get_prior

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stats"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ObservationIn(BaseModel):
    successes: int = Field(ge=0)
    trials: int = Field(ge=0)

    @model_validator(mode="after")
    def _successes_within_trials(self) -> "ObservationIn":
        if self.successes > self.trials:
            raise ValueError("successes cannot exceed trials")
        return self

    def to_observation(self) -> Observation:
        return Observation(self.successes, self.trials)


class PriorIn(BaseModel):
    """Either a preset ``name`` or explicit ``alpha`` / ``beta``."""

    name: str | None = None
    alpha: float | None = Field(default=None, gt=0)
    beta: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _name_or_shapes(self) -> "PriorIn":
        if (self.alpha is None) != (self.beta is None):
            raise ValueError("alpha and beta must be given together")
        if self.name is not None and self.alpha is not None:
            raise ValueError("give either a preset name or alpha/beta, not both")
        return self

    def resolve(self) -> PriorConfig:
        if self.alpha is not None and self.beta is not None:
            return custom_prior(self.alpha, self.beta)
        return get_prior(self.name or settings.DEFAULT_PRIOR)


class EngineOptions(BaseModel):
    prior: PriorIn = PriorIn()
    n_samples: int = Field(default=settings.MONTE_CARLO_SAMPLES, gt=0)
    seed: int | None = Field(default=settings.RANDOM_SEED, ge=0)


class BetaParamsOut(BaseModel):
    alpha: float
    beta: float


class IntervalOut(BaseModel):
    lower: float
    upper: float


class RecommendationOut(BaseModel):
    variant: str
    confidence: str
    probability: float
    expected_loss: float


class AnalyzeRequest(EngineOptions):
    variant_a: ObservationIn
    variant_b: ObservationIn
    confidence: float = Field(default=settings.CREDIBLE_LEVEL, gt=0, lt=1)


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="strings")

    prior: BetaParamsOut
    posterior_a: BetaParamsOut
    posterior_b: BetaParamsOut
    probability_b_greater_than_a: float
    expected_loss_a: float
    expected_loss_b: float
    credible_interval_a: IntervalOut
    credible_interval_b: IntervalOut
    hdi_a: IntervalOut
    hdi_b: IntervalOut
    bayes_factor: float
    log_bayes_factor: float
    recommendation: RecommendationOut


class SequentialRequest(EngineOptions):
    variant_a: list[ObservationIn] = Field(max_length=settings.MAX_SEQUENTIAL_STEPS)
    variant_b: list[ObservationIn] = Field(max_length=settings.MAX_SEQUENTIAL_STEPS)
    threshold: float = Field(default=settings.STOP_THRESHOLD, gt=0, lt=1)


class SequentialStepOut(BaseModel):
    step: int
    cumulative_a: ObservationIn
    cumulative_b: ObservationIn
    probability_b_greater_than_a: float
    expected_loss_a: float
    expected_loss_b: float
    should_stop: bool


class SequentialResponse(BaseModel):
    steps: list[SequentialStepOut]
    stopped_early: bool


class PredictiveRequest(BaseModel):
    prior: PriorIn = PriorIn()
    observation: ObservationIn
    future_trials: int = Field(ge=0)


class PredictiveResponse(BaseModel):
    posterior: BetaParamsOut
    trials: int
    expected_successes: float
    variance: float


class SampleSizeRequest(BaseModel):
    baseline_rate: float = Field(gt=0, lt=1)
    expected_lift: float
    alpha: float = Field(default=0.05, gt=0, lt=1)
    power: float = Field(default=0.8, gt=0, lt=1)
    daily_traffic: int | None = Field(default=None, gt=0)
    max_duration_days: int | None = Field(default=None, gt=0)


class SampleSizeResponse(BaseModel):
    per_variant: int
    total: int
    expected_rate: float
    expected_duration_days: int | None = None
    actual_duration_days: int | None = None
    actual_total: int | None = None
    feasibility: str | None = None


class PriorOut(BaseModel):
    name: str
    alpha: float
    beta: float
    description: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _params_out(params: BetaParams) -> BetaParamsOut:
    return BetaParamsOut(alpha=params.alpha, beta=params.beta)


def _build_engine(options: EngineOptions) -> InferenceEngine:
    if options.n_samples > settings.MAX_MONTE_CARLO_SAMPLES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"n_samples may not exceed {settings.MAX_MONTE_CARLO_SAMPLES}",
        )
    return InferenceEngine(_resolve_prior(options.prior), options.n_samples, options.seed)


def _resolve_prior(prior: PriorIn) -> PriorConfig:
    try:
        return prior.resolve()
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]))


def _unprocessable(exc: StatsError) -> HTTPException:
    logger.warning("Rejected stats request: %s", exc)
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/priors", response_model=list[PriorOut])
async def list_priors() -> list[PriorOut]:
    """List the named prior presets."""
    return [
        PriorOut(name=p.name, alpha=p.alpha, beta=p.beta, description=p.description)
        for p in PRIOR_PRESETS.values()
    ]


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(body: AnalyzeRequest) -> AnalyzeResponse:
    """Full two-arm comparison for a single snapshot of observations."""
    engine = _build_engine(body)
    obs_a = body.variant_a.to_observation()
    obs_b = body.variant_b.to_observation()
    try:
        result = engine.analyze(obs_a, obs_b, body.confidence)
    except StatsError as exc:
        raise _unprocessable(exc)

    loss = LossResult(
        result.expected_loss_a, result.expected_loss_b, result.probability_b_greater_than_a
    )
    rec = recommend(result.probability_b_greater_than_a, loss)
    return AnalyzeResponse(
        prior=_params_out(engine.prior.params),
        posterior_a=_params_out(engine.posterior(obs_a)),
        posterior_b=_params_out(engine.posterior(obs_b)),
        probability_b_greater_than_a=result.probability_b_greater_than_a,
        expected_loss_a=result.expected_loss_a,
        expected_loss_b=result.expected_loss_b,
        credible_interval_a=IntervalOut(**result.credible_interval_a._asdict()),
        credible_interval_b=IntervalOut(**result.credible_interval_b._asdict()),
        hdi_a=IntervalOut(**result.hdi_a._asdict()),
        hdi_b=IntervalOut(**result.hdi_b._asdict()),
        bayes_factor=result.bayes_factor,
        log_bayes_factor=result.log_bayes_factor,
        recommendation=RecommendationOut(
            variant=rec.variant,
            confidence=rec.confidence,
            probability=rec.probability,
            expected_loss=rec.expected_loss,
        ),
    )


@router.post("/sequential", response_model=SequentialResponse)
async def sequential(body: SequentialRequest) -> SequentialResponse:
    """Run the early-stopping scan over per-period increments."""
    engine = _build_engine(body)
    try:
        steps = engine.sequential(
            [o.to_observation() for o in body.variant_a],
            [o.to_observation() for o in body.variant_b],
            threshold=body.threshold,
        )
    except StatsError as exc:
        raise _unprocessable(exc)

    return SequentialResponse(
        steps=[
            SequentialStepOut(
                step=s.step,
                cumulative_a=ObservationIn(
                    successes=s.cumulative_a.successes, trials=s.cumulative_a.trials
                ),
                cumulative_b=ObservationIn(
                    successes=s.cumulative_b.successes, trials=s.cumulative_b.trials
                ),
                probability_b_greater_than_a=s.probability_b_greater_than_a,
                expected_loss_a=s.expected_loss.loss_a,
                expected_loss_b=s.expected_loss.loss_b,
                should_stop=s.should_stop,
            )
            for s in steps
        ],
        stopped_early=bool(steps) and steps[-1].should_stop,
    )


@router.post("/predictive", response_model=PredictiveResponse)
async def predictive(body: PredictiveRequest) -> PredictiveResponse:
    """Beta-Binomial posterior predictive moments for future trials."""
    engine = InferenceEngine(_resolve_prior(body.prior))
    obs = body.observation.to_observation()
    try:
        summary = engine.predictive(obs, body.future_trials)
    except StatsError as exc:
        raise _unprocessable(exc)
    return PredictiveResponse(
        posterior=BetaParamsOut(alpha=summary.alpha, beta=summary.beta),
        trials=summary.trials,
        expected_successes=summary.expected_successes,
        variance=summary.variance,
    )


@router.post("/sample-size", response_model=SampleSizeResponse)
async def sample_size(body: SampleSizeRequest) -> SampleSizeResponse:
    """Visitors per variant needed to detect the expected lift."""
    try:
        plan = required_sample_size(
            body.baseline_rate,
            body.expected_lift,
            alpha=body.alpha,
            power=body.power,
            daily_traffic=body.daily_traffic,
            max_duration_days=body.max_duration_days,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return SampleSizeResponse(
        per_variant=plan.per_variant,
        total=plan.total,
        expected_rate=plan.expected_rate,
        expected_duration_days=plan.expected_duration_days,
        actual_duration_days=plan.actual_duration_days,
        actual_total=plan.actual_total,
        feasibility=plan.feasibility,
    )
