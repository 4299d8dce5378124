import argparse
import json
from datetime import datetime
from pathlib import Path

from . import __version__
from . import repositories as repo
from .cleanup import prune_match_history, prune_ranking_history
from .config import Settings, load_settings
from .database import init_database, session_scope
from .errors import TalentRankError
from .export import write_rankings_csv
from .logger import get_logger
from .matching import MatchResultManager
from .ranking import RankingEngine
from .signals import ProfileSignalProvider, ResilientSignalProvider
from .weights import parse_weights, validate_weight_config


def _settings(args: argparse.Namespace) -> Settings:
    settings = args.settings
    if getattr(args, "db", None):
        settings.db_path = Path(args.db)
    return settings


def _read_json(path_str: str) -> dict:
    path = Path(path_str)
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _manager(settings: Settings) -> MatchResultManager:
    signals = ResilientSignalProvider(ProfileSignalProvider(), max_retries=settings.signal_retries)
    return MatchResultManager(settings.db_path, signals=signals)


def _engine(settings: Settings) -> RankingEngine:
    return RankingEngine(settings.db_path, default_config=settings.default_weights)


def _weights_arg(args: argparse.Namespace):
    if not getattr(args, "weights", None):
        return None
    return parse_weights(args.weights, config_name=getattr(args, "name", None))


def _print_ranking(ranking, candidate=None) -> None:
    name = candidate.full_name if candidate else f"candidate {ranking.candidate_id}"
    change = ""
    if ranking.rank_change:
        change = f" ({'+' if ranking.rank_change > 0 else ''}{ranking.rank_change})"
    print(
        f"#{ranking.rank_position}{change}  {name}  score={ranking.ranking_score:.1f}  "
        f"percentile={ranking.percentile:.1f}  status={ranking.hiring_status_enum.display_name}"
    )


def cmd_init_db(args: argparse.Namespace) -> None:
    settings = _settings(args)
    init_database(settings.db_path)
    print(f"Database ready: {settings.db_path}")


def cmd_add_job(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if args.input:
        data = _read_json(args.input)
    else:
        data = {
            "title": args.title,
            "required_skills": args.skills,
            "experience_required": args.experience,
            "education_requirement": args.education,
        }
    with session_scope(settings.db_path) as session:
        job = repo.add_job(session, data)
    print(f"Job: {job.id}")


def cmd_add_candidate(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if args.input:
        data = _read_json(args.input)
    else:
        data = {
            "full_name": args.name,
            "email": args.email,
            "skills": args.skills,
            "experience_years": args.years,
            "education": args.education,
        }
    with session_scope(settings.db_path) as session:
        candidate = repo.add_candidate(session, data)
    print(f"Candidate: {candidate.id}")


def cmd_match(args: argparse.Namespace) -> None:
    result = _manager(_settings(args)).create_or_update_match(args.job, args.candidate)
    print(f"Match result: {result.id} (version {result.version})")
    print(f"  Overall: {result.overall_score}  Level: {result.match_level}")
    print(f"  Skills: {result.skills_score}  Experience: {result.experience_score}  Education: {result.education_score}")
    print(f"  Matched: {', '.join(result.matched_skill_list) or '-'}")
    print(f"  Partial: {', '.join(result.partial_skill_list) or '-'}")
    print(f"  Missing: {', '.join(result.missing_skill_list) or '-'}")


def cmd_match_all(args: argparse.Namespace) -> None:
    settings = _settings(args)
    workers = args.workers or settings.batch_workers
    batch = _manager(settings).process_all_candidates_for_job(args.job, workers=workers)
    print(f"Processed: {batch.processed}  Failed: {batch.failed}  Skipped: {batch.skipped}")
    for candidate_id, error in batch.errors.items():
        print(f"[error] candidate {candidate_id} -> {error}")


def cmd_recalc(args: argparse.Namespace) -> None:
    result = _manager(_settings(args)).recalculate_score(args.match)
    print(f"Match result: {result.id}  Overall: {result.overall_score}  Recalculations: {result.recalculation_count}")


def cmd_recalc_all(args: argparse.Namespace) -> None:
    batch = _manager(_settings(args)).batch_recalculate_for_job(args.job)
    print(f"Recalculated: {batch.processed}  Failed: {batch.failed}")


def cmd_rank(args: argparse.Namespace) -> None:
    rankings = _engine(_settings(args)).generate_ranking(args.job, _weights_arg(args))
    print(f"Ranked {len(rankings)} candidates (generation {rankings[0].generation})")


def cmd_rerank(args: argparse.Namespace) -> None:
    weights = parse_weights(args.weights, config_name=args.name)
    rankings = _engine(_settings(args)).recalculate_ranking_with_weights(args.job, weights)
    print(f"Re-ranked {len(rankings)} candidates (generation {rankings[0].generation})")
    for ranking in rankings:
        _print_ranking(ranking)


def cmd_show(args: argparse.Namespace) -> None:
    engine = _engine(_settings(args))
    pairs = engine.current_rankings_with_candidates(args.job)
    if args.search:
        matching_ids = {r.id for r in engine.search_rankings(args.job, args.search)}
        pairs = [(r, c) for r, c in pairs if r.id in matching_ids]
    if args.top:
        pairs = [(r, c) for r, c in pairs if r.rank_position <= args.top]
    if not pairs:
        print("No rankings for this job.")
        return
    for ranking, candidate in pairs:
        _print_ranking(ranking, candidate)


def cmd_history(args: argparse.Namespace) -> None:
    history = _engine(_settings(args)).ranking_history(args.job, args.candidate)
    if not history:
        print("No ranking history.")
        return
    for ranking in history:
        print(
            f"generation {ranking.generation}: rank {ranking.rank_position}/{ranking.total_candidates_ranked}  "
            f"score={ranking.ranking_score:.1f}  weights={ranking.weights_used}"
        )


def cmd_export(args: argparse.Namespace) -> None:
    settings = _settings(args)
    engine = _engine(settings)
    pairs = engine.current_rankings_with_candidates(args.job)
    with session_scope(settings.db_path) as session:
        title = repo.require_job(session, args.job).title
    path = write_rankings_csv(pairs, args.job, title, Path(args.out))
    print(f"Exported {len(pairs)} rankings to {path}")


def cmd_validate_weights(args: argparse.Namespace) -> None:
    try:
        config = parse_weights(args.weights)
    except TalentRankError as e:
        print(f"Invalid: {e}")
        raise SystemExit(1)
    outcome = validate_weight_config(config)
    print(outcome["message"])


def cmd_stats(args: argparse.Namespace) -> None:
    settings = _settings(args)
    match_stats = _manager(settings).match_statistics(args.job)
    ranking_stats = _engine(settings).ranking_statistics(args.job)
    print(json.dumps({"matches": match_stats, "rankings": ranking_stats}, indent=2, default=str))


def cmd_shortlist(args: argparse.Namespace) -> None:
    ranking = _engine(_settings(args)).update_shortlist_status(args.ranking, not args.off, args.notes)
    print(f"Ranking {ranking.id}: shortlisted={ranking.is_shortlisted} status={ranking.hiring_status_enum.display_name}")


def cmd_status(args: argparse.Namespace) -> None:
    engine = _engine(_settings(args))
    if args.interview:
        ranking = engine.schedule_interview(args.ranking, datetime.fromisoformat(args.interview), args.notes)
    else:
        ranking = engine.update_hiring_status(args.ranking, args.status, args.notes)
    print(f"Ranking {ranking.id}: status={ranking.hiring_status_enum.display_name}")


def cmd_prune(args: argparse.Namespace) -> None:
    settings = _settings(args)
    before, after = prune_ranking_history(settings.db_path, job_id=args.job, keep_generations=args.keep)
    print(f"Rankings: {before - after} removed, {after} remaining")
    before, after = prune_match_history(settings.db_path, days=args.days)
    print(f"Match results: {before - after} removed, {after} remaining")


def main():
    settings = load_settings()
    parser = argparse.ArgumentParser(prog="talentrank", description="Candidate matching and ranking CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help=f"Path to SQLite database (default: {settings.db_path})")

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init-db", help="Create the database tables")
    ini.set_defaults(func=cmd_init_db)

    job = subparsers.add_parser("add-job", help="Add a job from a JSON file or flags")
    job.add_argument("--input", help="Path to job JSON input")
    job.add_argument("--title", help="Job title")
    job.add_argument("--skills", help="Comma-separated required skills")
    job.add_argument("--experience", help="Required experience, e.g. 3-5, 2+, 5")
    job.add_argument("--education", help="Education requirement")
    job.set_defaults(func=cmd_add_job)

    cand = subparsers.add_parser("add-candidate", help="Add a candidate from a JSON file or flags")
    cand.add_argument("--input", help="Path to candidate JSON input")
    cand.add_argument("--name", help="Full name")
    cand.add_argument("--email", help="Email address")
    cand.add_argument("--skills", help="Comma-separated skills")
    cand.add_argument("--years", type=int, help="Years of experience")
    cand.add_argument("--education", help="Highest education")
    cand.set_defaults(func=cmd_add_candidate)

    mat = subparsers.add_parser("match", help="Score one candidate against a job")
    mat.add_argument("--job", type=int, required=True, help="Job id")
    mat.add_argument("--candidate", type=int, required=True, help="Candidate id")
    mat.set_defaults(func=cmd_match)

    mall = subparsers.add_parser("match-all", help="Score every candidate against a job")
    mall.add_argument("--job", type=int, required=True, help="Job id")
    mall.add_argument("--workers", type=int, help="Worker threads (default: TALENTRANK_BATCH_WORKERS)")
    mall.set_defaults(func=cmd_match_all)

    rec = subparsers.add_parser("recalc", help="Recalculate a match result in place")
    rec.add_argument("--match", type=int, required=True, help="Match result id")
    rec.set_defaults(func=cmd_recalc)

    recall = subparsers.add_parser("recalc-all", help="Recalculate all latest match results for a job")
    recall.add_argument("--job", type=int, required=True, help="Job id")
    recall.set_defaults(func=cmd_recalc_all)

    rnk = subparsers.add_parser("rank", help="Generate a ranking for a job")
    rnk.add_argument("--job", type=int, required=True, help="Job id")
    rnk.add_argument("--weights", help="skills,experience,education[,personality[,cultural_fit]] (default: configured)")
    rnk.add_argument("--name", help="Optional config name recorded with the run")
    rnk.set_defaults(func=cmd_rank)

    rer = subparsers.add_parser("rerank", help="Re-rank a job with new weights")
    rer.add_argument("--job", type=int, required=True, help="Job id")
    rer.add_argument("--weights", required=True, help="skills,experience,education[,personality[,cultural_fit]]")
    rer.add_argument("--name", help="Optional config name recorded with the run")
    rer.set_defaults(func=cmd_rerank)

    shw = subparsers.add_parser("show", help="Show the current ranking for a job")
    shw.add_argument("--job", type=int, required=True, help="Job id")
    shw.add_argument("--top", type=int, help="Only the top N positions")
    shw.add_argument("--search", help="Filter by name or email substring")
    shw.set_defaults(func=cmd_show)

    his = subparsers.add_parser("history", help="Ranking history of a candidate for a job")
    his.add_argument("--job", type=int, required=True, help="Job id")
    his.add_argument("--candidate", type=int, required=True, help="Candidate id")
    his.set_defaults(func=cmd_history)

    exp = subparsers.add_parser("export", help="Export the current ranking as CSV")
    exp.add_argument("--job", type=int, required=True, help="Job id")
    exp.add_argument("--out", default="exports", help="Output directory (default: exports)")
    exp.set_defaults(func=cmd_export)

    vw = subparsers.add_parser("validate-weights", help="Check a weight configuration")
    vw.add_argument("--weights", required=True, help="skills,experience,education[,personality[,cultural_fit]]")
    vw.set_defaults(func=cmd_validate_weights)

    sts = subparsers.add_parser("stats", help="Match and ranking statistics for a job")
    sts.add_argument("--job", type=int, required=True, help="Job id")
    sts.set_defaults(func=cmd_stats)

    sl = subparsers.add_parser("shortlist", help="Shortlist (or un-shortlist) a ranked candidate")
    sl.add_argument("--ranking", type=int, required=True, help="Ranking id")
    sl.add_argument("--off", action="store_true", help="Remove from shortlist")
    sl.add_argument("--notes", help="Shortlist notes")
    sl.set_defaults(func=cmd_shortlist)

    st = subparsers.add_parser("status", help="Update hiring status or schedule an interview")
    st.add_argument("--ranking", type=int, required=True, help="Ranking id")
    st.add_argument("--status", default="UNDER_REVIEW", help="Hiring status name, e.g. REJECTED, HIRED")
    st.add_argument("--interview", help="Schedule an interview at this ISO datetime instead")
    st.add_argument("--notes", help="Notes")
    st.set_defaults(func=cmd_status)

    prn = subparsers.add_parser("prune", help="Prune old ranking generations and match versions")
    prn.add_argument("--job", type=int, help="Restrict ranking prune to one job")
    prn.add_argument("--keep", type=int, default=5, help="Ranking generations to keep (default: 5)")
    prn.add_argument("--days", type=int, default=90, help="Match versions older than this are pruned (default: 90)")
    prn.set_defaults(func=cmd_prune)

    args = parser.parse_args()
    args.settings = settings

    if args.version:
        print(__version__)
        return

    get_logger(level=settings.log_level, log_dir=settings.log_dir)

    if hasattr(args, "func"):
        try:
            args.func(args)
        except (TalentRankError, ValueError) as e:
            raise SystemExit(f"[error] {e}")
        return

    parser.print_help()


if __name__ == "__main__":
    main()
