"""
cluster_context/domain/identity.py

Primary subject of a context snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

SPLUNK_SEARCH_URL = "https://osdsecuritylogs.splunkcloud.com/en-US/app/search/search"
CCX_DASHBOARD_URL = "https://kraken.psi.redhat.com/clusters"

# Audit index per cluster manager environment. Integration clusters do not
# forward audit logs.
SPLUNK_AUDIT_INDEXES = {
    "production": "openshift_managed_audit",
    "stage": "openshift_managed_audit_stage",
}


@dataclass(frozen=True)
class Identity:
    """
    Resolved cluster identity plus the auxiliary IDs other sources query by.
    """

    cluster_id: str
    name: str
    version: str
    external_id: str
    base_domain: str
    infra_id: str
    organization_id: str | None = None
    ocm_env: str = "production"

    def related_links(self, jira_base_url: str) -> dict[str, str]:
        """
        Links to external tools holding more data about this cluster.

        Keys are `splunk_audit_logs` (absent for integration clusters),
        `ohss_tickets` and `ccx_dashboard`.
        """

        links: dict[str, str] = {}
        splunk_index = SPLUNK_AUDIT_INDEXES.get(self.ocm_env)
        if splunk_index is not None:
            search = f'search index="{splunk_index}" clusterid="{self.infra_id}"'
            links["splunk_audit_logs"] = f"{SPLUNK_SEARCH_URL}?q={quote(search, safe='')}"

        jql = (
            f'project = OHSS and ("Cluster ID" ~ "{self.cluster_id}" '
            f'OR "Cluster ID" ~ "{self.external_id}")'
        )
        links["ohss_tickets"] = f"{jira_base_url.rstrip('/')}/issues/?jql={quote(jql, safe='()')}"
        links["ccx_dashboard"] = f"{CCX_DASHBOARD_URL}/{self.external_id}"
        return links
