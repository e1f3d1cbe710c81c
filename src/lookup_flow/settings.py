"""Default settings for lookup-flow.

Maps to keys in config.example.yaml. Override via the user config file.
"""

from pathlib import Path

from platformdirs import user_config_dir

# Platform-appropriate directories (resolved by platformdirs)
config_dir = Path(user_config_dir("lookup-flow"))
config_file = config_dir / "config.yaml"

# Search backend defaults
search_url = "http://localhost:9200"
search_timeout = 10.0
search_verify_tls = True
search_use_mapping_types = False
search_max_hits = 10

# Server defaults
server_host = "127.0.0.1"
server_port = 9848
