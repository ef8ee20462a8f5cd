#!/usr/bin/env python3
"""
FitCoach
Main entry point for the command-line tool.
"""

import argparse
import logging
import os
import sys

import yaml
from dotenv import load_dotenv

from fitcoach.catalog import load_catalog
from fitcoach.coach_assistant import CoachAssistant
from fitcoach.config import load_config
from fitcoach.errors import CoachEngineError
from fitcoach.macro_planner import calculate_macro_targets
from fitcoach.models import Profile
from fitcoach.plan_patches import apply_patches
from fitcoach.plan_store import PlanStore
from fitcoach.plan_validator import validate_plan
from fitcoach.profile_analyzer import calculate_tdee
from fitcoach.program_generator import ProgramGenerator
from fitcoach.progression import format_load
from fitcoach.substitution import DEFAULT_MAX_SLOTS, SubstitutionEngine
from fitcoach.units import format_height, format_weight


def print_banner():
    """Print welcome banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║        FITCOACH                                              ║
║        Training plans and nutrition targets                  ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
    """
    print(banner)


def print_section(title):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def load_profile(path):
    """Load a profile from a YAML file."""
    if not os.path.exists(path):
        print(f"Error: profile file {path} not found!")
        sys.exit(1)

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    return Profile.from_dict(data)


def open_store(config):
    store = PlanStore(config["storage"]["db_path"])
    store.init_schema()
    return store


def format_sets(sets):
    if sets.reps is not None:
        reps = str(sets.reps)
    elif sets.reps_range is not None:
        reps = f"{sets.reps_range.min}-{sets.reps_range.max}"
    else:
        reps = "?"

    parts = [f"{sets.count} x {reps}"]
    if sets.weight_kg is not None:
        parts.append(f"@ {format_load(sets.weight_kg)} kg")
    if sets.rpe is not None:
        parts.append(f"RPE {sets.rpe:g}")
    if sets.rest_seconds is not None:
        parts.append(f"rest {sets.rest_seconds}s")
    return "  ".join(parts)


def print_plan(plan, catalog, week_number=None):
    print(f"\n{plan.name}  (id: {plan.id})")
    if plan.notes:
        print(f"{plan.notes}\n")

    for week in plan.weeks:
        if week_number is not None and week.week_number != week_number:
            continue
        print(f"WEEK {week.week_number}")
        for day_index, workout in enumerate(week.workouts):
            print(f"  [{day_index}] {workout.day_label.upper()}  - {workout.notes}")
            for position, entry in enumerate(workout.exercises):
                item = catalog.get_by_id(entry.exercise_id)
                name = item.name if item else entry.exercise_id
                print(f"      {position}. {name:<32} {format_sets(entry.sets)}")
        print()

    if plan.warnings:
        print(f"⚠ {len(plan.warnings)} slot(s) could not be filled:")
        for warning in plan.warnings:
            print(f"  • Week {warning.week_number}: {warning.message}")

    if plan.nutrition_targets:
        targets = plan.nutrition_targets
        print(
            f"\nDaily targets: {targets['calories']} kcal | protein {targets['protein_g']}g | "
            f"carbs {targets['carbs_g']}g | fat {targets['fat_g']}g"
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_targets(args, config):
    profile = load_profile(args.profile)
    unit_system = args.units

    print_section("ENERGY AND MACRO TARGETS")
    print(f"Height: {format_height(profile.height_cm, unit_system) if profile.height_cm else 'n/a'}")
    print(f"Weight: {format_weight(profile.weight_kg, unit_system) if profile.weight_kg else 'n/a'}")

    energy = calculate_tdee(profile)
    targets = calculate_macro_targets(
        profile, energy["tdee"], goal_id=args.goal, default_split=config["nutrition"]["macro_split"]
    )
    print(f"\nBMR:      {round(energy['bmr'])} kcal")
    print(f"TDEE:     {round(energy['tdee'])} kcal")
    print(f"Calories: {targets['calories']} kcal")
    print(f"Protein:  {targets['protein_g']} g")
    print(f"Carbs:    {targets['carbs_g']} g")
    print(f"Fat:      {targets['fat_g']} g")


def cmd_generate(args, config):
    profile = load_profile(args.profile)
    catalog = load_catalog(config["catalog"]["path"])

    print_section("GENERATING PLAN")
    generator = ProgramGenerator(catalog, config=config)
    plan = generator.generate(profile, goal_id=args.goal, weeks=args.weeks)

    validation = validate_plan(plan, catalog)
    print_plan(plan, catalog)
    print("\n" + validation["summary"])

    if args.no_save:
        return

    store = open_store(config)
    try:
        store.save_profile(profile)
        store.save(plan)
    finally:
        store.close()
    print(f"\n✓ Plan saved to {config['storage']['db_path']} (id: {plan.id})")


def cmd_list(args, config):
    store = open_store(config)
    try:
        plans = store.list_plans()
    finally:
        store.close()

    if not plans:
        print("No saved plans.")
        return

    for row in plans:
        print(f"{row['id']}  {row['name']:<36} updated {row['updated_at']}")


def cmd_show(args, config):
    catalog = load_catalog(config["catalog"]["path"])
    store = open_store(config)
    try:
        plan = store.get(args.plan_id)
    finally:
        store.close()

    if plan is None:
        print(f"❌ Plan {args.plan_id} not found.")
        sys.exit(1)
    print_plan(plan, catalog, week_number=args.week)


def cmd_substitute(args, config):
    catalog = load_catalog(config["catalog"]["path"])
    store = open_store(config)
    try:
        plan = store.get(args.plan_id)
        if plan is None:
            print(f"❌ Plan {args.plan_id} not found.")
            sys.exit(1)

        profile = load_profile(args.profile)
        settings = config.get("substitution") or {}
        history = store.get_history(
            plan.id,
            history_size=settings.get("history_size"),
            max_slots=int(settings.get("max_slots", DEFAULT_MAX_SLOTS)),
        )
        engine = SubstitutionEngine(catalog, history=history, config=config)
        week = plan.get_week(args.week)
        if week is None or not 0 <= args.day < len(week.workouts):
            print(f"❌ Week {args.week} has no day at index {args.day}.")
            sys.exit(1)
        workout = week.workouts[args.day]
        if not 0 <= args.exercise < len(workout.exercises):
            print(f"❌ {workout.day_label} has no exercise at index {args.exercise}.")
            sys.exit(1)
        original = workout.exercises[args.exercise].exercise_id

        replacement = engine.substitute_in_plan(plan, args.week, args.day, args.exercise, profile.equipment)
        if replacement is None:
            print("No suitable substitute found for that exercise.")
            return

        store.update(plan)
        store.save_history(history)
    finally:
        store.close()

    before = catalog.get_by_id(original)
    print(f"✓ Replaced {before.name if before else original} with {replacement.name}")


def cmd_catalog(args, config):
    catalog = load_catalog(config["catalog"]["path"])
    if args.query:
        items = catalog.search(args.query)
    elif args.body_part:
        items = catalog.get_by_body_part(args.body_part)
    else:
        items = catalog.all_items()

    for item in items:
        equipment = ", ".join(sorted(item.equipment))
        print(f"{item.id:<32} {item.name:<32} {item.body_part:<12} {item.difficulty.value:<13} {equipment}")
    print(f"\n{len(items)} exercise(s)")


def cmd_chat(args, config):
    catalog = load_catalog(config["catalog"]["path"])
    profile = load_profile(args.profile)

    api_key_env = config["assistant"]["api_key_env"]
    if not os.getenv(api_key_env):
        print(f"\n❌ Error: {api_key_env} not found in environment variables!")
        print("\nPlease:")
        print("1. Copy .env.example to .env")
        print("2. Add your Anthropic API key to .env")
        sys.exit(1)

    store = open_store(config)
    try:
        plan = store.get(args.plan_id)
        if plan is None:
            print(f"❌ Plan {args.plan_id} not found.")
            sys.exit(1)

        assistant = CoachAssistant.from_config(config, catalog=catalog)
        print("Ask about your plan. Empty line to quit.\n")
        while True:
            message = input("> ").strip()
            if not message:
                break

            try:
                reply = assistant.send_message(message, profile=profile, plan=plan)
            except RuntimeError as e:
                print(f"⚠ {e}")
                continue
            print(f"\n{reply}\n")

            patches = assistant.propose_patches(reply)
            if not patches:
                continue
            answer = input(f"Apply {len(patches)} proposed change(s)? [y/N] ").strip().lower()
            if answer != "y":
                continue

            applied, rejected = apply_patches(plan, patches, catalog)
            for patch, reason in rejected:
                print(f"⚠ Skipped {patch.type}: {reason}")
            if applied:
                store.update(plan)
                print(f"✓ Applied {len(applied)} change(s)")
    finally:
        store.close()


def build_parser():
    parser = argparse.ArgumentParser(description="Training plans and nutrition targets")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    targets = subparsers.add_parser("targets", help="Show TDEE and macro targets")
    targets.add_argument("--profile", default="profile.yaml")
    targets.add_argument("--goal", help="Goal id (defaults to highest priority)")
    targets.add_argument("--units", choices=["metric", "imperial"], default="metric")
    targets.set_defaults(func=cmd_targets)

    generate = subparsers.add_parser("generate", help="Generate and save a multi-week plan")
    generate.add_argument("--profile", default="profile.yaml")
    generate.add_argument("--goal", help="Goal id (defaults to highest priority)")
    generate.add_argument("--weeks", type=int, help="Number of weeks (defaults to config)")
    generate.add_argument("--no-save", action="store_true", help="Print the plan without saving it")
    generate.set_defaults(func=cmd_generate)

    list_plans = subparsers.add_parser("list", help="List saved plans")
    list_plans.set_defaults(func=cmd_list)

    show = subparsers.add_parser("show", help="Print a saved plan")
    show.add_argument("plan_id")
    show.add_argument("--week", type=int)
    show.set_defaults(func=cmd_show)

    substitute = subparsers.add_parser("substitute", help="Swap one exercise in a saved plan")
    substitute.add_argument("plan_id")
    substitute.add_argument("--week", type=int, required=True)
    substitute.add_argument("--day", type=int, required=True, help="0-based day index")
    substitute.add_argument("--exercise", type=int, required=True, help="0-based exercise index")
    substitute.add_argument("--profile", default="profile.yaml")
    substitute.set_defaults(func=cmd_substitute)

    catalog = subparsers.add_parser("catalog", help="Browse the exercise catalog")
    catalog.add_argument("query", nargs="?")
    catalog.add_argument("--body-part")
    catalog.set_defaults(func=cmd_catalog)

    chat = subparsers.add_parser("chat", help="Ask the coach assistant to adjust a saved plan")
    chat.add_argument("plan_id")
    chat.add_argument("--profile", default="profile.yaml")
    chat.set_defaults(func=cmd_chat)

    return parser


def main(argv=None):
    """Main application flow."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print_banner()

    # Load environment variables
    load_dotenv()

    config = load_config(args.config)

    try:
        args.func(args, config)
    except CoachEngineError as e:
        print(f"\n❌ {e}")
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"\n❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nExiting...")
        sys.exit(0)
