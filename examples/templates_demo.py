""" Example: build each starter template and check it against the rule catalog. """
from flow_advisor.analysis.validation import validate
from flow_advisor.catalog.templates import CATEGORIES, apply_template


def main():
    for category in CATEGORIES:
        print(f"\n{category.name}")
        for template in category.templates:
            flow = apply_template(template.id)
            result = validate(flow)
            issues = ", ".join(result.rule_ids) or "none"
            print(f"  {template.id}: grade {result.grade.letter}, issues: {issues}")


if __name__ == '__main__':
    main()
