# debug_plan.py
import asyncio
import json
import sys
from datetime import datetime, timedelta, timezone

from napmap.orchestrator import orchestrate_plan


async def main():
    arrive_at = datetime.now(timezone.utc) + timedelta(hours=3)
    payload = {
        "origin": sys.argv[1] if len(sys.argv) > 1 else "Manchester Piccadilly",
        "destination": sys.argv[2] if len(sys.argv) > 2 else "Leeds",
        "arriveAt": sys.argv[3] if len(sys.argv) > 3 else arrive_at.isoformat(),
    }

    result = await orchestrate_plan(payload)
    print(json.dumps(result.model_dump(by_alias=True), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
