import argparse
import logging
import random
import threading
import time

from config import BotConfig, Config
from errors import ScenarioError, SimulatorError
from scenarios import choose_scenario, scenarios_from_config
from visit import VisitStatus, new_visit, no_wait

logger = logging.getLogger(__name__)


class TrafficGenerator:
    """Runs simulated visits, each one on its own thread with its own clients"""

    def __init__(self, bot_config, search_token=None, ua_token=None, wait=True, seed=None):
        self.bot_config = bot_config
        self.search_token = search_token or Config.SEARCH_TOKEN
        self.ua_token = ua_token or Config.UA_TOKEN
        self.wait = wait
        self.scenarios = scenarios_from_config(bot_config)
        self.rng = random.Random(seed)
        self.lock = threading.Lock()
        self.stats = {
            'total_visits': 0,
            'completed': 0,
            'aborted': 0,
            'events': 0,
            'errors_by_type': {}
        }

    def _record(self, visit=None, error=None):
        with self.lock:
            self.stats['total_visits'] += 1
            if visit is not None:
                self.stats['events'] += visit.events_executed
            if error is None and visit is not None and visit.status == VisitStatus.COMPLETED:
                self.stats['completed'] += 1
            else:
                self.stats['aborted'] += 1
                key = type(error).__name__ if error is not None else 'Unknown'
                self.stats['errors_by_type'][key] = self.stats['errors_by_type'].get(key, 0) + 1

    def simulate_visit(self):
        """Simulate one complete visit, errors end the visit but not the generator"""
        with self.lock:
            scenario = choose_scenario(self.scenarios, self.rng)
            visit_rng = random.Random(self.rng.random())

        visit = None
        try:
            visit = new_visit(
                self.bot_config, self.search_token, self.ua_token,
                rng=visit_rng, delay=None if self.wait else no_wait,
            )
            visit.execute_scenario(scenario)
        except SimulatorError as e:
            print(f"❌ Visit aborted ({scenario.name}): {e}")
            self._record(visit, e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error in visit ({scenario.name})")
            print(f"❌ Visit crashed ({scenario.name}): {e}")
            self._record(visit, e)
            return

        print(f"👤 Visit ended: {visit.state.username} - {scenario.name}, Events: {visit.events_executed}")
        self._record(visit)

    def run_simulation(self, visits=10, concurrent_users=5):
        """Run `visits` visits with at most `concurrent_users` at a time"""
        print(f"🚀 Starting simulation of {visits} visits")
        print(f"👥 Concurrent users: {concurrent_users}")
        print(f"🔎 Search endpoint: {self.bot_config.get_search_endpoint()}")
        print(f"📈 Analytics endpoint: {self.bot_config.get_analytics_endpoint()}")
        print("=" * 50)

        if not self.scenarios:
            raise ScenarioError("The bot configuration has no scenarios")

        start_time = time.time()
        slots = threading.Semaphore(concurrent_users)

        def worker():
            try:
                self.simulate_visit()
            finally:
                slots.release()

        threads = []
        for _ in range(visits):
            slots.acquire()
            thread = threading.Thread(target=worker)
            thread.daemon = True
            thread.start()
            threads.append(thread)

        for thread in threads:
            thread.join()

        elapsed = time.time() - start_time
        print("\n" + "=" * 50)
        print("📊 Simulation Summary:")
        print(f"Total Visits: {self.stats['total_visits']}")
        print(f"Completed: {self.stats['completed']}")
        print(f"Aborted: {self.stats['aborted']}")
        print(f"Events executed: {self.stats['events']}")
        print(f"Duration: {elapsed:.1f}s")
        if self.stats['errors_by_type']:
            print("\nErrors by Type:")
            for error_type, count in sorted(self.stats['errors_by_type'].items()):
                print(f"  {error_type}: {count}")
        return self.stats


def main(args=None):
    parser = argparse.ArgumentParser(description='Search usage analytics traffic generator')
    parser.add_argument('--config', required=True, help='Bot configuration JSON file')
    parser.add_argument('--visits', type=int, default=10, help='Number of visits to simulate')
    parser.add_argument('--users', type=int, default=5, help='Max concurrent visits')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--no-wait', action='store_true', help='Do not wait between actions')
    parser.add_argument('--verbose', action='store_true', help='Log every event')
    opts = parser.parse_args(args)

    logging.basicConfig(
        level=logging.INFO if opts.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    try:
        bot_config = BotConfig.from_file(opts.config, seed=opts.seed)
        generator = TrafficGenerator(bot_config, wait=not opts.no_wait, seed=opts.seed)
    except ScenarioError as e:
        print(f"❌ {e}")
        raise SystemExit(1)
    return generator.run_simulation(visits=opts.visits, concurrent_users=opts.users)


if __name__ == "__main__":
    main()
