import sys

from blog_search.cli import main

sys.exit(main())
