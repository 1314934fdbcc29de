# Controllers
from .library_controller import LibraryController
