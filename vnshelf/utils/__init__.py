# Utils package
from .markup import vndb_to_markdown
from .paths import VNSHELF_DATA_DIR, get_database_path, get_log_path
