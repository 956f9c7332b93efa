"""Base resolver class with common patterns."""

from tierdice.config import RulesSettings
from tierdice.dice.roller import DieSource, RandomDieSource


class BaseResolver:
    """Base class for all rules resolvers.

    Provides common patterns:
    - Explicit settings (no ambient configuration)
    - An injectable die source (random by default, fixed for debug rolls)
    """

    def __init__(
        self,
        settings: RulesSettings | None = None,
        dice: DieSource | None = None,
    ) -> None:
        """Initialize resolver with settings and a die source.

        Args:
            settings: Rules tunables. Defaults are used when omitted.
            dice: Die source. A fresh RandomDieSource when omitted.
        """
        self.settings = settings if settings is not None else RulesSettings(_env_file=None)
        self.dice = dice if dice is not None else RandomDieSource()
