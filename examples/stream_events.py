# Requiere python-dotenv: pip install -e ".[examples]"
import contextlib
import os

import dotenv
import httpx

from eventsource_parser import EventSource, EventSourceAPIError, SetRetryInterval

dotenv.load_dotenv()

# Ej: EVENTSOURCE_TEST_URL=https://sse.example.com/stream
url = httpx.URL(os.environ["EVENTSOURCE_TEST_URL"])

source = EventSource(
    base_url=f"{url.scheme}://{url.netloc.decode('ascii')}",
    carry_partial_records=True,
)
# El parser no guarda el último id; lo hace quien consume el stream.
last_event_id = None

try:
    with contextlib.closing(source.events(url.raw_path.decode("ascii"))) as events:
        for item in events:
            if isinstance(item, SetRetryInterval):
                print(f"Server suggests reconnecting after {item.milliseconds} ms")
                continue
            if item.id is not None:
                last_event_id = item.id
            print(f"{item.type}: {item.data}")
except EventSourceAPIError as e:
    if e.is_auth_error:
        print("Check your EVENTSOURCE_API_KEY.")
    else:
        print(e.to_dict())
except KeyboardInterrupt:
    print(f"\nStopped. Last-Event-ID to resume from: {last_event_id}")
finally:
    source.close()
