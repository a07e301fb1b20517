""" Error types raised by the flow advisor. """


class AdvisorError(Exception):
    """ Base class for all flow advisor errors. """


class InvalidFlow(AdvisorError, ValueError):
    """ The flow is missing required fields (e.g. ``nodes``) or is malformed. """


class InvalidLoopConfig(AdvisorError, ValueError):
    """ A loop configuration holds values that cannot describe a loop. """


class RuleEvaluationError(AdvisorError, RuntimeError):
    """
    A rule or policy predicate raised while being evaluated.

    Predicates are expected to treat missing configuration as "not configured",
    so this always points at the catalog entry, not at the flow.
    """

    def __init__(self, rule_id: str, message: str):
        super().__init__(f"Rule '{rule_id}' failed to evaluate: {message}")
        self.rule_id = rule_id


class UnknownTemplate(AdvisorError, KeyError):
    """ No flow template is registered under the requested id. """

    def __str__(self) -> str:
        return f"Template not found: {self.args[0]}"
