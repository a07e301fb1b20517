""" Example: analyse a flow file and write the full report as JSON. """
import logging
from pathlib import Path

from flow_advisor.integrations.export import flow_file_to_report


def main():
    logging.basicConfig(level=logging.INFO)
    flow_path = "examples/flows/invoice_sync.yaml"
    out_json_path = "invoice_sync_report.json"
    flow_file_to_report(Path(flow_path), Path(out_json_path))
    print(f"Wrote flow report JSON to: {out_json_path}")


if __name__ == '__main__':
    main()
