"""Domain errors."""


class NutritionEngineError(Exception):
    """Base class for nutrition engine failures."""


class FoodNotFoundError(NutritionEngineError):
    """Raised when no source could produce nutrition for a query."""

    def __init__(
        self,
        query: str,
        attempted: list[str] | None = None,
        message: str | None = None,
    ) -> None:
        self.query = query
        self.attempted = attempted or []
        super().__init__(message or f"No nutrition data found for {query!r}")


class ProviderTimeoutError(FoodNotFoundError):
    """Raised when every provider attempt for a query timed out."""

    def __init__(self, query: str, attempted: list[str]) -> None:
        super().__init__(
            query,
            attempted,
            message=f"Nutrition providers timed out for {query!r}: "
            f"{', '.join(attempted)}",
        )


class ReferenceDataError(NutritionEngineError):
    """Raised when bundled reference data cannot be loaded."""
