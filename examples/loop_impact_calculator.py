""" Example: estimate the API cost of a nested Apply to each before building it. """
from flow_advisor.analysis.impact import calculate_impact, optimised_projection, project_loop_costs


def main():
    impact = calculate_impact({
        "itemCount": 100,
        "actionsInLoop": 2,
        "nestedLoops": [{"itemCount": 50, "actionsInLoop": 3}],
        "dailyRuns": 4,
    })

    print("calls per run:", impact.single_run_api_calls)
    print("calls per month:", impact.monthly_api_calls)
    print(f"run time: {impact.estimated_time_minutes:.1f} minutes")
    print("throttling:", impact.throttling_risk.level.value, "-", impact.throttling_risk.message)
    if impact.warning:
        print(impact.warning)

    for rec in impact.recommendations:
        print(f"  [{rec.priority}] {rec.title}: {rec.impact}")
        if rec.calculation:
            print(f"      {rec.calculation}")

    costs = project_loop_costs(impact)
    print(f"PPR usage: {costs.ppr_percentage:.0f}% of {costs.ppr_limit}, {costs.licence_needed}")

    after = optimised_projection(impact)
    print(f"after optimisation: {after.calls_before} -> {after.calls_after} calls per run")


if __name__ == '__main__':
    main()
