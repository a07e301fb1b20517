""" Example: analyse a YAML flow and print the headline findings. """
import logging

from flow_advisor.advisor import FlowAdvisor
from flow_advisor.flow.loader import load_flow_file


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    flow = load_flow_file("examples/flows/leave_requests.yaml", tag_licences=True)
    report = FlowAdvisor().analyse(flow)

    validation = report.validation
    print(f"\n--- {report.flow_name} ---")
    print(f"score: {validation.score} ({validation.grade.letter} - {validation.grade.label})")
    for rule in validation.critical + validation.warnings + validation.suggestions:
        print(f"  [{rule.severity.value}] {rule.message} -> {rule.fix}")

    print(f"compliant: {report.compliance.compliant} (score {report.compliance.score})")
    for policy in report.compliance.violations:
        print(f"  violation: {policy.name} - {policy.requirement}")

    for loop in report.loops:
        impact = loop.impact
        print(f"loop {loop.loop_index} at position {loop.position}: "
              f"{impact.single_run_api_calls} calls/run, {impact.monthly_api_calls} calls/month, "
              f"risk {impact.throttling_risk.level.value} [{loop.severity}]")
        for assumption in impact.assumptions:
            print(f"    assumed: {assumption}")

    for key, cost in report.costs.items():
        print(f"{key}: £{cost.monthly_cost:.2f}/month ({cost.licence})")

    for suggestion in report.suggestions:
        print(f"suggestion ({suggestion.impact}): {suggestion.title} - {suggestion.description}")


if __name__ == '__main__':
    main()
