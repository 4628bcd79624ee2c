"""Schema DDL for the storage layer.

Mirrors the scan model: scan_results -> hosts -> ports -> vulnerabilities,
each child deleted with its parent.
"""

# ─── Schema DDL ────────────────────────────────────────────────────────────────

SCHEMA_SCAN_TARGETS = """
CREATE TABLE IF NOT EXISTS scan_targets (
    id TEXT PRIMARY KEY,
    target TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('ip', 'range', 'domain')),
    description TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

SCHEMA_SCAN_RESULTS = """
CREATE TABLE IF NOT EXISTS scan_results (
    id TEXT PRIMARY KEY,
    target_id TEXT REFERENCES scan_targets(id) ON DELETE CASCADE,
    target TEXT NOT NULL,
    scanner TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('running', 'completed', 'completed_with_errors', 'failed')),
    start_time TEXT NOT NULL,
    end_time TEXT,
    duration REAL,
    raw_output TEXT,
    error_message TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

SCHEMA_HOSTS = """
CREATE TABLE IF NOT EXISTS hosts (
    id TEXT PRIMARY KEY,
    scan_id TEXT NOT NULL REFERENCES scan_results(id) ON DELETE CASCADE,
    ip_address TEXT NOT NULL,
    hostname TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL,
    os TEXT NOT NULL DEFAULT '',
    os_confidence INTEGER NOT NULL DEFAULT 0 CHECK (os_confidence BETWEEN 0 AND 100),
    created_at TEXT NOT NULL
);
"""

SCHEMA_PORTS = """
CREATE TABLE IF NOT EXISTS ports (
    id TEXT PRIMARY KEY,
    host_id TEXT NOT NULL REFERENCES hosts(id) ON DELETE CASCADE,
    number INTEGER NOT NULL CHECK (number > 0 AND number <= 65535),
    protocol TEXT NOT NULL CHECK (protocol IN ('tcp', 'udp')),
    state TEXT NOT NULL,
    service TEXT NOT NULL DEFAULT '',
    version TEXT NOT NULL DEFAULT '',
    product TEXT NOT NULL DEFAULT '',
    extra_info TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
"""

SCHEMA_VULNERABILITIES = """
CREATE TABLE IF NOT EXISTS vulnerabilities (
    id TEXT PRIMARY KEY,
    port_id TEXT NOT NULL REFERENCES ports(id) ON DELETE CASCADE,
    cve TEXT,
    severity TEXT NOT NULL CHECK (severity IN ('low', 'medium', 'high', 'critical')),
    description TEXT NOT NULL,
    solution TEXT NOT NULL DEFAULT '',
    reference_links TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
"""

SCHEMA_SCAN_CONFIGURATIONS = """
CREATE TABLE IF NOT EXISTS scan_configurations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    scanner TEXT NOT NULL,
    ports TEXT NOT NULL DEFAULT '',
    arguments TEXT NOT NULL DEFAULT '',
    timing TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_scan_targets_type ON scan_targets(type);",
    "CREATE INDEX IF NOT EXISTS idx_scan_results_target_id ON scan_results(target_id);",
    "CREATE INDEX IF NOT EXISTS idx_scan_results_status ON scan_results(status);",
    "CREATE INDEX IF NOT EXISTS idx_hosts_scan_id ON hosts(scan_id);",
    "CREATE INDEX IF NOT EXISTS idx_hosts_ip_address ON hosts(ip_address);",
    "CREATE INDEX IF NOT EXISTS idx_ports_host_id ON ports(host_id);",
    "CREATE INDEX IF NOT EXISTS idx_ports_number_protocol ON ports(number, protocol);",
    "CREATE INDEX IF NOT EXISTS idx_vulnerabilities_port_id ON vulnerabilities(port_id);",
]

ALL_SCHEMAS = [
    SCHEMA_SCAN_TARGETS,
    SCHEMA_SCAN_RESULTS,
    SCHEMA_HOSTS,
    SCHEMA_PORTS,
    SCHEMA_VULNERABILITIES,
    SCHEMA_SCAN_CONFIGURATIONS,
    *INDEXES,
]
