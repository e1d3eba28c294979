"""
Feature Toggle service.
"""

import time
from typing import Optional

from starlette.concurrency import run_in_threadpool

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import FeatureToggleException

from .catalog import FeatureProvider, InMemoryFeatureProvider, JsonFileFeatureProvider
from .rules.dependencies import find_feature
from .rules.engine import FeatureEngine
from .rules.errors import EvaluationFailureReason, FeatureEvaluationError
from .rules.models import (
    FeatureEvaluationRequest, FeatureEvaluationResponse,
    FeatureResponse, FeatureListResponse
)

SERVICE_NAME = "features"
DEFAULT_PORT = 8020

# Metric label for names absent from the catalog
UNKNOWN_FEATURE_LABEL = "<unknown>"


class FeatureService(BaseService):
    """Feature Toggle service implementation."""

    def __init__(self, provider: Optional[FeatureProvider] = None, config: Optional[ServiceConfig] = None):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)

        self.provider = provider if provider is not None else self._default_provider()
        self.engine = FeatureEngine(self.provider)

        self._setup_feature_routes()

    def _default_provider(self) -> FeatureProvider:
        if self.config.catalog_path:
            self.logger.info("Using JSON feature catalog", path=self.config.catalog_path)
            return JsonFileFeatureProvider(self.config.catalog_path)

        self.logger.warning("No feature catalog configured; every feature will be reported missing")
        return InMemoryFeatureProvider()

    def _setup_feature_routes(self):
        """Set up feature-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Feature Toggle Service",
                "version": "1.0.0",
                "catalog": self.provider.describe(),
                "capabilities": ["evaluation", "dependencies", "rules"]
            }

        @self.app.get("/features", response_model=FeatureListResponse)
        async def list_features():
            """List every feature definition in the catalog."""
            catalog = await run_in_threadpool(self.provider.fetch_all)
            return FeatureListResponse(
                features=[FeatureResponse.from_definition(definition) for definition in catalog],
                total=len(catalog)
            )

        @self.app.get("/features/{feature_name}", response_model=FeatureResponse)
        async def get_feature(feature_name: str):
            """Get one feature definition."""
            catalog = await run_in_threadpool(self.provider.fetch_all)
            definition = find_feature(catalog, feature_name)
            if definition is None:
                raise FeatureToggleException(
                    "FEATURE_NOT_FOUND",
                    f"Feature '{feature_name}' not found",
                    {"feature": feature_name},
                    status_code=404
                )
            return FeatureResponse.from_definition(definition)

        @self.app.post("/features/{feature_name}/evaluate", response_model=FeatureEvaluationResponse)
        async def evaluate_feature(feature_name: str, request: Optional[FeatureEvaluationRequest] = None):
            """Evaluate a feature for the supplied context."""
            context = request.context if request is not None else None
            start_time = time.time()

            try:
                enabled = await run_in_threadpool(self.engine.evaluate, feature_name, context)
            except FeatureEvaluationError as e:
                label = UNKNOWN_FEATURE_LABEL if e.reason is EvaluationFailureReason.NOT_FOUND else feature_name
                self.metrics.record_feature_evaluation(label, e.reason.value, time.time() - start_time)
                raise

            self.metrics.record_feature_evaluation(
                feature_name,
                "true" if enabled else "false",
                time.time() - start_time
            )
            return FeatureEvaluationResponse(feature=feature_name, enabled=enabled)

    async def _check_dependencies(self):
        """Check that the feature catalog can be fetched."""
        try:
            await run_in_threadpool(self.provider.fetch_all)
            return {"catalog": "ok"}
        except Exception as e:
            self.logger.warning("Feature catalog unavailable", error=str(e))
            return {"catalog": "error"}


def create_app(provider: Optional[FeatureProvider] = None, config: Optional[ServiceConfig] = None):
    """Create feature service application."""
    service = FeatureService(provider=provider, config=config)
    return service.app


if __name__ == "__main__":
    service = FeatureService()
    service.run()
