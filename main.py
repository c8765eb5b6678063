import argparse
import dataclasses
import json
import logging
import signal
import sys
import time
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from core.app_context import AppContext
from core.config_loader import load_config
from core.errors import MatchingError, ProfileNotFoundError, JobNotFoundError
from core.recommender.models import RecommendationFilters, RecommendationRequest, SortOrder
from core.stores.memory import load_fixture

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global flag for graceful shutdown
running = True

def signal_handler(sig, frame):
    global running
    logger.info("Shutdown signal received")
    running = False


def _json_default(obj):
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode='json')
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj):
        return dataclasses.asdict(obj)
    return str(obj)


def emit(result):
    """Print a result as JSON."""
    if dataclasses.is_dataclass(result):
        result = dataclasses.asdict(result)
    elif isinstance(result, list):
        result = [dataclasses.asdict(r) if dataclasses.is_dataclass(r) else r for r in result]
    print(json.dumps(result, indent=2, default=_json_default))


def _build_request(args) -> RecommendationRequest:
    filters = RecommendationFilters(
        remote_only=args.remote_only,
        skills=args.skill or [],
        locations=args.location or [],
    )
    return RecommendationRequest(
        filters=filters,
        sort=SortOrder(args.sort),
        limit=args.limit,
        page=args.page,
    )


def run_recommend(ctx: AppContext, args):
    emit(ctx.recommendation_service.get_recommendations(args.user, _build_request(args), timeout=args.timeout))


def run_similar(ctx: AppContext, args):
    emit(ctx.recommendation_service.get_similar_jobs(args.job, args.user, limit=args.limit))


def run_trending(ctx: AppContext, args):
    emit(ctx.recommendation_service.get_trending_jobs(args.user, limit=args.limit, time_window=args.window))


def run_analyze(ctx: AppContext, args, profile_store):
    profile = profile_store.get_candidate_profile(args.user)
    if profile is None:
        raise ProfileNotFoundError(args.user)
    emit(ctx.analyzer.analyze_profile(profile))


def run_match(ctx: AppContext, args, profile_store):
    profile = profile_store.get_candidate_profile(args.user)
    if profile is None:
        raise ProfileNotFoundError(args.user)
    job = profile_store.get_job(args.job)
    if job is None:
        raise JobNotFoundError(args.job)
    emit(ctx.scoring_engine.calculate_match(profile, job))


def run_watch(ctx: AppContext, args):
    """Recompute recommendations on an interval until interrupted."""
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    cycle_count = 0
    while running:
        cycle_count += 1
        cycle_start = time.time()
        try:
            response = ctx.recommendation_service.get_recommendations(args.user, _build_request(args))
            top = response.data[0] if response.data else None
            logger.info(
                f"=== Cycle #{cycle_count}: {response.total} recommendation(s)"
                + (f", top {top.job.title} ({top.match_score:.2f})" if top else "")
                + " ==="
            )
            logger.info(f"Stats: {ctx.recommendation_service.get_stats()}")
        except MatchingError as e:
            logger.error(f"Error in watch loop: {e}", exc_info=True)

        cycle_elapsed = time.time() - cycle_start
        # Sleep in short steps to allow responsive shutdown
        remaining = max(0.0, args.interval - cycle_elapsed)
        while running and remaining > 0:
            step = min(1.0, remaining)
            time.sleep(step)
            remaining -= step


def main():
    parser = argparse.ArgumentParser(description="JobMatch recommendation engine driver")
    parser.add_argument('--config', default='config.yaml', help='Path to config YAML')
    parser.add_argument('--data', required=True, help='JSON fixture with candidates, jobs and preferences')
    sub = parser.add_subparsers(dest='command', required=True)

    def add_request_args(p):
        p.add_argument('--user', required=True)
        p.add_argument('--limit', type=int, default=None)
        p.add_argument('--page', type=int, default=1)
        p.add_argument('--sort', choices=[s.value for s in SortOrder], default=SortOrder.RELEVANCE.value)
        p.add_argument('--remote-only', action='store_true')
        p.add_argument('--skill', action='append', help='Require a skill (repeatable)')
        p.add_argument('--location', action='append', help='Restrict to a location (repeatable)')
        p.add_argument('--timeout', type=float, default=None)

    add_request_args(sub.add_parser('recommend', help='Ranked recommendations for a user'))

    watch = sub.add_parser('watch', help='Recompute recommendations on an interval')
    add_request_args(watch)
    watch.add_argument('--interval', type=float, default=60.0)

    similar = sub.add_parser('similar', help='Jobs similar to a job')
    similar.add_argument('--job', required=True)
    similar.add_argument('--user', required=True)
    similar.add_argument('--limit', type=int, default=None)

    trending = sub.add_parser('trending', help='Trending jobs')
    trending.add_argument('--user', required=True)
    trending.add_argument('--limit', type=int, default=None)
    trending.add_argument('--window', choices=['week', 'month', 'quarter'], default='week')

    analyze = sub.add_parser('analyze', help='Analyze a user profile')
    analyze.add_argument('--user', required=True)

    match = sub.add_parser('match', help='Score one user against one job')
    match.add_argument('--user', required=True)
    match.add_argument('--job', required=True)

    args = parser.parse_args()

    ctx = None
    try:
        config = load_config(args.config)
        profile_store, preferences_store = load_fixture(args.data)
        ctx = AppContext.build(config, profile_store, preferences_store)
        ctx.start()

        if args.command == 'recommend':
            run_recommend(ctx, args)
        elif args.command == 'watch':
            run_watch(ctx, args)
        elif args.command == 'similar':
            run_similar(ctx, args)
        elif args.command == 'trending':
            run_trending(ctx, args)
        elif args.command == 'analyze':
            run_analyze(ctx, args, profile_store)
        elif args.command == 'match':
            run_match(ctx, args, profile_store)
    except (MatchingError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)
    finally:
        if ctx is not None:
            ctx.shutdown()


if __name__ == "__main__":
    main()
