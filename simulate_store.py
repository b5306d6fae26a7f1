#!/usr/bin/env python3
# Minimal storefront simulator → posts tracking events to the ingest endpoint (/ingest)
import argparse, asyncio, json, random, time, uuid
import urllib.request
from typing import Any, Dict, List

# ---- probabilities you can tweak later ----
P_ADD_TO_CART = 0.35
P_BEGIN_CHECKOUT = 0.7
P_PURCHASE = 0.7

CURRENCIES = ["USD","USD","USD","EUR","GBP","AUD","CAD"]
CATS       = ["Tops","Bottoms","Shoes","Accessories","Home","Outerwear"]

def uid(): return str(uuid.uuid4())

def send_event(evt, target):
    data = json.dumps(evt).encode("utf-8")
    req = urllib.request.Request(target, data=data,
                                 headers={"Content-Type":"application/json"},
                                 method="POST")
    try:
        with urllib.request.urlopen(req, timeout=5) as resp:
            _ = resp.read()
    except Exception as e:
        print("[warn] POST failed:", e)

def make_product(rng: random.Random, bad_id_rate: float = 0.0) -> Dict[str, Any]:
    n = rng.randint(10000, 10199)
    cat = rng.choice(CATS)
    pid = "undefined" if rng.random() < bad_id_rate else f"SKU-{n}"
    return {"id": pid, "name": f"{cat} {n}", "price": round(rng.uniform(10, 120), 2)}

def event_base(store_id, pixel_id, currency, event_name, **extra):
    return {
        "store_id": store_id,
        "pixel_id": pixel_id,
        "event_name": event_name,
        "currency": currency,
        "timestamp": time.time(),
        "user_data": {"client_user_agent": "StoreSim/1.0"},
        **extra,
    }

def build_session_events(rng: random.Random, store_id: str, pixel_id: str,
                         bad_id_rate: float = 0.0) -> List[Dict[str, Any]]:
    """One shopper session, using the storefront script's snake_case event names."""
    cur = rng.choice(CURRENCIES)
    product = make_product(rng, bad_id_rate)
    line = {"id": product["id"], "quantity": rng.choice([1,1,1,2]), "price": product["price"]}

    events = [
        event_base(store_id, pixel_id, cur, "page_view", url=rng.choice(["/","/home","/sale"])),
        event_base(store_id, pixel_id, cur, "view_content",
                   products=[{"id": product["id"], "quantity": 1, "price": product["price"]}]),
    ]
    if rng.random() < P_ADD_TO_CART:
        events.append(event_base(store_id, pixel_id, cur, "add_to_cart", products=[line]))
        if rng.random() < P_BEGIN_CHECKOUT:
            events.append(event_base(store_id, pixel_id, cur, "begin_checkout", products=[line]))
            if rng.random() < P_PURCHASE:
                events.append(event_base(store_id, pixel_id, cur, "purchase", products=[line],
                                         order_id="o_" + uid()[:12]))
    return events

async def simulate_one_session(rng, args):
    for evt in build_session_events(rng, args.store, args.pixel, args.bad_id_rate):
        send_event(evt, args.target)
        await asyncio.sleep(rng.uniform(0.05, 0.2))

async def main():
    ap = argparse.ArgumentParser(description="Storefront event simulator")
    ap.add_argument("--target", required=True, help="Ingest URL (e.g., http://127.0.0.1:5000/ingest)")
    ap.add_argument("--store", default="store-001")
    ap.add_argument("--pixel", required=True)
    ap.add_argument("--rps", type=float, default=1.0, help="sessions per second")
    ap.add_argument("--duration", type=int, default=60, help="seconds to run")
    ap.add_argument("--bad-id-rate", type=float, default=0.0, help="share of products sent with an 'undefined' id")
    ap.add_argument("--seed", default="", help="fixed seed for reproducible traffic")
    args = ap.parse_args()

    rng = random.Random(args.seed or None)
    print(f"Sending ~{args.rps} sessions/sec for {args.duration}s → {args.target}")
    start = time.time()
    tasks = []
    while time.time() - start < args.duration:
        tasks.append(asyncio.create_task(simulate_one_session(rng, args)))
        await asyncio.sleep(max(0.01, 1.0/args.rps))
        if len(tasks) > 500:
            tasks = [t for t in tasks if not t.done()]
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)

if __name__ == "__main__":
    asyncio.run(main())
