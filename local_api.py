from flask import Flask, request, jsonify
from datetime import datetime
from faker import Faker
import hashlib
import uuid

from config import Config

app = Flask(__name__)

# Store analytics events in memory for testing
events_buffer = []

ANALYTICS_KINDS = ('search', 'click', 'view', 'custom')
COLLECTIONS = ['default', 'support', 'community']
SOURCES = ['Web', 'Knowledge Base', 'Forums', 'Documentation']


def _authorized():
    return request.headers.get('Authorization', '').startswith('Bearer ')


def _fake_results(query_text, count, first_result):
    """Deterministic fake results for a query so repeated searches agree"""
    fake = Faker()
    fake.seed_instance(int(hashlib.md5(query_text.encode()).hexdigest()[:8], 16))
    total = fake.random_int(0, 60)
    results = []
    for rank in range(first_result, min(first_result + count, total)):
        uri = f"https://docs.example.com/{fake.slug()}-{rank}"
        results.append({
            'title': f"{query_text.title()} {fake.catch_phrase()}".strip(),
            'uri': uri,
            'printableUri': uri,
            'clickUri': uri,
            'raw': {
                'sysurihash': hashlib.sha1(uri.encode()).hexdigest()[:16],
                'syscollection': fake.random_element(COLLECTIONS),
                'syssource': fake.random_element(SOURCES),
                'size': fake.random_int(1000, 90000),
            }
        })
    return total, results


@app.route('/')
def home():
    return jsonify({
        "status": "running",
        "message": "Local search and analytics services are ready!",
        "endpoints": {
            "POST /rest/search/v2": "Run a search query",
            "POST /rest/v15/analytics/<kind>": "Send a usage analytics event",
            "GET /stats": "View statistics"
        }
    })


@app.route('/rest/search/v2', methods=['POST'])
def search():
    if not _authorized():
        return jsonify({"error": "Missing bearer token"}), 401

    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"error": "No query provided"}), 400

    query_text = data.get('q', '')
    count = int(data.get('numberOfResults', 10))
    first_result = int(data.get('firstResult', 0))
    total, results = _fake_results(query_text, count, first_result)

    return jsonify({
        'totalCount': total,
        'duration': len(results) * 7 + 31,
        'searchUid': str(uuid.uuid4()),
        'pipeline': data.get('pipeline', 'default'),
        'results': results
    })


@app.route('/rest/v15/analytics/<kind>', methods=['POST'])
def receive_event(kind):
    if kind not in ANALYTICS_KINDS:
        return jsonify({"error": f"Unknown event kind: {kind}"}), 404
    if not _authorized():
        return jsonify({"error": "Missing bearer token"}), 401

    event = request.get_json(silent=True)
    if not event:
        return jsonify({"error": "No data provided"}), 400

    event['event_kind'] = kind
    event['received_at'] = datetime.utcnow().isoformat()
    event['client_ip'] = request.headers.get('X-Forwarded-For', request.remote_addr)
    events_buffer.append(event)

    print(f"✅ Received {kind} event from {event.get('username', 'anonymous')}. Total stored: {len(events_buffer)}")

    return jsonify({'status': 'accepted', 'visitId': str(uuid.uuid4())}), 201


@app.route('/stats', methods=['GET'])
def get_stats():
    events_by_kind = {}
    for event in events_buffer:
        kind = event.get('event_kind', 'unknown')
        events_by_kind[kind] = events_by_kind.get(kind, 0) + 1

    return jsonify({
        'total_events': len(events_buffer),
        'events_by_kind': events_by_kind,
        'unique_visitors': len({e.get('username') for e in events_buffer}),
        'recent_events': events_buffer[-5:] if events_buffer else []
    })


if __name__ == '__main__':
    print(f"🚀 Starting local search and analytics services on http://localhost:{Config.API_PORT}")
    print(f"📊 View stats at http://localhost:{Config.API_PORT}/stats")
    app.run(debug=True, port=Config.API_PORT)
