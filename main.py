import asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from oracle_node.core.coordinator import Coordinator
from oracle_node.infra.config.settings import get_settings

if __name__ == "__main__":
    coordinator = Coordinator(get_settings())
    try:
        asyncio.run(coordinator.run_forever())
    except KeyboardInterrupt:
        pass
