import requests

from config import Config


def display_stats(url=None):
    url = url or f"http://localhost:{Config.API_PORT}/stats"
    try:
        response = requests.get(url, timeout=5)
        data = response.json()

        print("\n📊 SEARCH ANALYTICS DASHBOARD")
        print("=" * 50)
        print(f"📈 Total Events: {data['total_events']}")
        print(f"👥 Unique Visitors: {data['unique_visitors']}")
        print("\n🎯 Events by Kind:")

        for kind, count in data['events_by_kind'].items():
            percentage = (count / data['total_events']) * 100 if data['total_events'] > 0 else 0
            bar = "█" * int(percentage / 2)
            print(f"  {kind:<15} {count:>4} ({percentage:>5.1f}%) {bar}")

        print("\n🕐 Recent Events:")
        for event in data['recent_events'][-3:]:
            print(f"  • {event.get('event_kind', 'unknown')} - User: {event.get('username', 'anonymous')}")

        return data

    except requests.exceptions.RequestException as e:
        print(f"❌ Error: {e}")
        print("Make sure local_api.py is running!")


if __name__ == "__main__":
    display_stats()
