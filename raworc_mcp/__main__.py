import sys

from raworc_mcp.main import main

sys.exit(main())
