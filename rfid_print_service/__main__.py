"""Entry point for ``python -m rfid_print_service``."""

from .app import main

if __name__ == '__main__':
    main()
