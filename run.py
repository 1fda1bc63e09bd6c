#!/usr/bin/env python3
"""
Simple launcher script for the round-trip arbitrage bot.
"""
import asyncio
import sys

from roundtrip_arb.errors import ConfigurationError
from roundtrip_arb.main import main

if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot stopped by user")
        sys.exit(0)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
