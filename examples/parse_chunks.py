from eventsource_parser import ChunkParser, SetRetryInterval, StreamEvent

chunks = [
    ": stream opened\n\n",
    "event: price\ndata: {\"symbol\": \"ACME\", \"price\": 10.5}\nid: 41\n\n",
    "retry: 5000\n\n",
    "data: first line\ndata: second line\n\n",
    "event: heartbeat\n\n",  # sin data: se descarta
]

for item in ChunkParser(chunks):
    if isinstance(item, StreamEvent):
        print(f"[{item.type}] id={item.id} data={item.data!r}")
    elif isinstance(item, SetRetryInterval):
        print(f"reconectar tras {item.milliseconds} ms")
