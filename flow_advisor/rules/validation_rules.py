"""
Validation rule catalog.

Each predicate returns True when the flow has the problem described by the
rule's message. Predicates only read the flow and treat missing settings as
"not configured".
"""

from ..flow import structure
from ..flow.models import Flow, NodeType
from .models import Rule, Severity
from .registry import RuleRegistry, rule

VALIDATION_RULES: "RuleRegistry[Rule]" = RuleRegistry("validation")

ITEM_MODIFIED_TRIGGER = "sharepoint-item-modified"
UPDATE_ITEM = "sharepoint-update-item"
CREATE_KEYS = ("sharepoint-create-item", "sql-insert-row")
GET_KEYS = ("sharepoint-get-items", "sql-get-rows")

ERROR_HANDLING_NODE_LIMIT = 10
MIN_POLLING_MINUTES = 5
BATCH_CREATE_LIMIT = 3
REPEATED_GET_LIMIT = 2


# ============================================================
# CRITICAL - blocks deployment
# ============================================================

@rule(VALIDATION_RULES, "no-trigger", Severity.CRITICAL,
      message="Flow has no trigger - cannot start",
      fix="Add a trigger to initiate your flow")
def no_trigger(flow: Flow) -> bool:
    return flow.count(NodeType.TRIGGER) == 0


@rule(VALIDATION_RULES, "infinite-loop", Severity.CRITICAL,
      message="Potential infinite loop detected - updating item that triggers the flow",
      fix="Add trigger condition to exclude updates from flow service account")
def infinite_loop(flow: Flow) -> bool:
    return (
        flow.has_key(ITEM_MODIFIED_TRIGGER)
        and flow.has_key(UPDATE_ITEM)
        and not flow.has_loop_prevention
    )


@rule(VALIDATION_RULES, "missing-error-handling", Severity.CRITICAL,
      message="Complex flow without error handling",
      fix="Add Scope actions for try-catch error handling")
def missing_error_handling(flow: Flow) -> bool:
    return len(flow.nodes) > ERROR_HANDLING_NODE_LIMIT and not flow.has_key(structure.SCOPE)


@rule(VALIDATION_RULES, "unlicensed-premium", Severity.CRITICAL,
      message="Premium connectors used without appropriate licence",
      fix="Upgrade to Premium or Process licence")
def unlicensed_premium(flow: Flow) -> bool:
    has_premium = any(n.is_premium for n in flow.nodes)
    return has_premium and flow.setting("licence") == "Standard"


# ============================================================
# WARNINGS - performance and cost concerns
# ============================================================

@rule(VALIDATION_RULES, "unfiltered-get-items", Severity.WARNING,
      message="Get Items without filter will retrieve all items (poor performance)",
      fix="Add Filter Query to retrieve only needed items",
      impact="90% performance improvement possible")
def unfiltered_get_items(flow: Flow) -> bool:
    return any(not n.setting("filterQuery") for n in flow.nodes_with_key(structure.GET_ITEMS))


@rule(VALIDATION_RULES, "nested-loops", Severity.WARNING,
      message="Nested loops detected - exponential performance impact",
      fix="Consider using Select or Filter array instead of nested loops",
      impact="Can cause timeout with large datasets")
def nested_loops(flow: Flow) -> bool:
    return structure.max_loop_depth(flow) > 1


@rule(VALIDATION_RULES, "no-concurrency", Severity.WARNING,
      message="Apply to each without concurrency control",
      fix="Enable concurrency (20-50) for parallel processing",
      impact="5-10x performance improvement")
def no_concurrency(flow: Flow) -> bool:
    return any(
        not n.setting("concurrency") or n.setting("concurrency") == 1
        for n in flow.nodes_with_key(structure.APPLY_EACH)
    )


@rule(VALIDATION_RULES, "frequent-polling", Severity.WARNING,
      message="Very frequent polling detected",
      fix="Consider event-based triggers or longer intervals",
      impact="High PPR consumption")
def frequent_polling(flow: Flow) -> bool:
    recurrence = flow.first(structure.RECURRENCE)
    if recurrence is None or recurrence.setting("frequency") != "Minute":
        return False
    interval = recurrence.setting("interval")
    return isinstance(interval, (int, float)) and interval < MIN_POLLING_MINUTES


@rule(VALIDATION_RULES, "missing-select", Severity.WARNING,
      message="Apply to each directly on Get Items output",
      fix="Use Select action to map data before loop",
      impact="Reduces memory usage and improves performance")
def missing_select(flow: Flow) -> bool:
    return bool(structure.adjacent_pairs(flow, structure.GET_ITEMS, structure.APPLY_EACH))


# ============================================================
# SUGGESTIONS - best practice improvements
# ============================================================

@rule(VALIDATION_RULES, "use-batch", Severity.SUGGESTION,
      message="Multiple create/insert operations detected",
      fix="Consider batch operations for better performance")
def use_batch(flow: Flow) -> bool:
    return len(flow.nodes_with_key(*CREATE_KEYS)) > BATCH_CREATE_LIMIT


@rule(VALIDATION_RULES, "cache-static-data", Severity.SUGGESTION,
      message="Multiple data retrievals detected",
      fix="Cache static data in variables to reduce API calls")
def cache_static_data(flow: Flow) -> bool:
    return len(flow.nodes_with_key(*GET_KEYS)) > REPEATED_GET_LIMIT


@rule(VALIDATION_RULES, "use-odata-expand", Severity.SUGGESTION,
      message="Consider using $expand for lookup fields",
      fix="Use OData $expand to get related data in single call")
def use_odata_expand(flow: Flow) -> bool:
    return any(n.has_lookups for n in flow.nodes_with_key(structure.GET_ITEMS))
