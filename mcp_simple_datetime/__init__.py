"""Date/time tools and persistent named timers for the Model Context Protocol."""
