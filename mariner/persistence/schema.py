"""DDL for every table of the local database.

Reference tables (``marine_zones``, ``tide_stations``, ``zipcodes``) are
created by the provisioning pipeline inside its phase transaction; the
user table (``saved_ports``) is created on demand by the repository.
"""

MARINE_ZONES = "marine_zones"
TIDE_STATIONS = "tide_stations"
ZIPCODES = "zipcodes"
SAVED_PORTS = "saved_ports"

REFERENCE_TABLES = (MARINE_ZONES, TIDE_STATIONS, ZIPCODES)

MARINE_ZONES_DDL = """
    CREATE TABLE IF NOT EXISTS marine_zones (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        zone_code TEXT NOT NULL,
        zone_name TEXT,
        bbox_min_lat REAL,
        bbox_max_lat REAL,
        bbox_min_lon REAL,
        bbox_max_lon REAL,
        center_lat REAL NOT NULL,
        center_lon REAL NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_zones_code ON marine_zones(zone_code);
    CREATE INDEX IF NOT EXISTS idx_zones_center ON marine_zones(center_lat, center_lon);
"""

TIDE_STATIONS_DDL = """
    CREATE TABLE IF NOT EXISTS tide_stations (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        state TEXT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_tide_stations_coords ON tide_stations(latitude, longitude);
    CREATE INDEX IF NOT EXISTS idx_tide_stations_state ON tide_stations(state);
"""

ZIPCODES_DDL = """
    CREATE TABLE IF NOT EXISTS zipcodes (
        zipcode TEXT PRIMARY KEY,
        city TEXT NOT NULL,
        state TEXT NOT NULL,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_zipcodes_city_state ON zipcodes(city, state);
"""

SAVED_PORTS_DDL = """
    CREATE TABLE IF NOT EXISTS saved_ports (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        state TEXT,
        city TEXT,
        zipcode TEXT,
        zone_code TEXT NOT NULL,
        station_id TEXT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        created_at TEXT NOT NULL
    );
"""


def create_statements(ddl: str) -> list[str]:
    """Split a DDL block into single statements.

    ``executescript`` would commit the caller's open transaction, so the
    pipeline executes the statements one by one inside it instead.
    """
    return [stmt.strip() for stmt in ddl.split(";") if stmt.strip()]
