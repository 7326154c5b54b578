"""
Collect the context of one cluster from CLI and print it as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

from cluster_context.config import (
    get_context_settings,
    get_jira_settings,
    get_pagerduty_settings,
)
from cluster_context.domain.snapshot import AggregateOptions
from cluster_context.services.context_aggregator import build_context_aggregator


def main() -> int:
    defaults = get_context_settings()
    parser = argparse.ArgumentParser(description="Show the context of a cluster.")
    parser.add_argument("cluster", help="Cluster ID, external ID or name.")
    parser.add_argument("-d", "--days", type=int, default=defaults.days, help="Time window in days.")
    parser.add_argument(
        "--pages",
        type=int,
        default=defaults.pages,
        help="Maximum pages fetched per paginated source.",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Also fetch incident history and audit log events.",
    )
    parser.add_argument(
        "-t",
        "--team-ids",
        dest="team_ids",
        action="append",
        default=[],
        help="Incident tracker team ID to filter services by. Repeatable.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=defaults.max_workers,
        help="Number of sources fetched concurrently.",
    )
    parser.add_argument("--usertoken", default=None, help="Incident tracker user token.")
    parser.add_argument("--oauthtoken", default=None, help="Incident tracker OAuth token.")
    parser.add_argument("--jiratoken", default=None, help="Ticket tracker access token.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    pagerduty = get_pagerduty_settings()
    if args.usertoken:
        pagerduty = replace(pagerduty, user_token=args.usertoken)
    if args.oauthtoken:
        pagerduty = replace(pagerduty, oauth_token=args.oauthtoken)
    jira = get_jira_settings()
    if args.jiratoken:
        jira = replace(jira, token=args.jiratoken)

    aggregator = build_context_aggregator(pagerduty_settings=pagerduty, jira_settings=jira)
    snapshot, errors = aggregator.aggregate(
        args.cluster,
        AggregateOptions(
            days=args.days,
            pages=args.pages,
            full=args.full,
            team_ids=tuple(args.team_ids),
            max_workers=args.workers,
        ),
    )

    if snapshot is None:
        print(f"Failed to query cluster info: {'; '.join(str(error) for error in errors)}", file=sys.stderr)
        return 1

    if errors:
        print("Encountered errors during data collection. Displayed data may be incomplete:", file=sys.stderr)
        for error in errors:
            print(f"\t{error}", file=sys.stderr)

    payload = snapshot.to_dict()
    payload["related_links"] = snapshot.identity.related_links(jira.base_url)
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
