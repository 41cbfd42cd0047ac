import asyncio

# Serialises every mutating registry operation within the process.
registry_lock = asyncio.Lock()
