#!/usr/bin/env python3
"""Ad hoc query runner for the Recipe Recommendation Engine.

Runs a single recommendation with the tiers enabled in configuration.

Usage:
    python query.py beef tomato egg
    python query.py --diet vegetarian --calories 600 tomato basil pasta
    python query.py --max 5 chicken rice
    python query.py --debug chicken rice  # Show full JSON result
    python query.py --image images/fridge.png  # Detect ingredients from a photo first

Features:
- Primary recommendations and alternatives with coverage and missing ingredients
- Tier failures (quota exceeded, provider errors) shown as warnings
- Image support for ingredient detection
- Debug mode to display the full JSON result
"""

import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from recipe_engine.clients.gemini import create_gemini_client
from recipe_engine.engine.recommender import create_recommender
from recipe_engine.engine.scoring import calculate_coverage, find_missing_ingredients
from recipe_engine.models.models import Recipe, RecommendationSet, RecommendOptions
from recipe_engine.utils.config import config
from recipe_engine.utils.logger import logger
from recipe_engine.vision.ingredients import detect_ingredients

console = Console()

USAGE = "Usage: python query.py [--diet D] [--calories N] [--max N] [--image PATH] [--debug] ingredient ..."


def render_recipes(title: str, recipes: list[Recipe], ingredients: list[str]) -> None:
    """Print recipes as a table with coverage and missing ingredients."""
    if not recipes:
        return
    table = Table(title=title, show_lines=True)
    table.add_column("Recipe", style="bold")
    table.add_column("Source")
    table.add_column("Coverage", justify="right")
    table.add_column("Calories", justify="right")
    table.add_column("Missing ingredients")

    for recipe in recipes:
        missing = find_missing_ingredients(recipe, ingredients)
        table.add_row(
            recipe.title,
            recipe.source.value,
            f"{calculate_coverage(recipe, ingredients):.0%}",
            "?" if recipe.calories is None else f"{recipe.calories:.0f}",
            ", ".join(missing) if missing else "[green]none[/green]",
        )
    console.print(table)


def render_result(result: RecommendationSet, ingredients: list[str]) -> None:
    for failure in result.failures:
        console.print(f"[yellow]⚠ {failure.kind.value}: {failure.message}[/yellow]")
    if result.from_cache:
        console.print("[dim]Served from session cache[/dim]")
    if result.is_empty:
        console.print("[yellow]No recipes found for these ingredients[/yellow]")
        return
    render_recipes("Recommended", result.primary, ingredients)
    render_recipes("Alternatives", result.alternatives, ingredients)


async def run_query(
    ingredients: list[str],
    dietary_filter: str = None,
    options: RecommendOptions = None,
    image_path: str = None,
    debug: bool = False,
) -> None:
    """Execute one recommendation and print the result.

    Args:
        ingredients: Ingredient names given on the command line.
        dietary_filter: Optional diet.
        options: Threshold, result cap and calorie limit.
        image_path: Optional food photo to detect additional ingredients from.
        debug: If True, display the full JSON result.
    """
    if image_path:
        image_file = Path(image_path)
        if not image_file.exists():
            console.print(f"[red]✗ Error: Image file not found: {image_path}[/red]")
            sys.exit(1)
        logger.info(f"Detecting ingredients in image: {image_file.name}...")
        detected = await detect_ingredients(image_file.read_bytes(), create_gemini_client(config))
        console.print(f"[cyan]Detected ingredients:[/cyan] {', '.join(detected)}")
        ingredients = list(dict.fromkeys([*ingredients, *detected]))

    recommender = create_recommender(config)
    result = await recommender.recommend(ingredients, dietary_filter, options)

    console.print()
    if debug:
        console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=result.model_dump(mode="json"))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    render_result(result, ingredients)


def parse_args(argv: list[str]) -> dict:
    """Parse flags followed by ingredient names."""
    args = {"dietary_filter": None, "calorie_limit": None, "max_results": None, "image_path": None, "debug": False}
    value_flags = {"--diet": "dietary_filter", "--calories": "calorie_limit", "--max": "max_results", "--image": "image_path"}
    position = 0

    while position < len(argv) and argv[position].startswith("--"):
        flag = argv[position]
        if flag == "--debug":
            args["debug"] = True
            position += 1
        elif flag in value_flags:
            if position + 1 >= len(argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            args[value_flags[flag]] = argv[position + 1]
            position += 2
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    args["ingredients"] = [token.strip(",") for token in argv[position:] if token.strip(",")]
    return args


if __name__ == "__main__":
    args = parse_args(sys.argv[1:])
    if not args["ingredients"] and not args["image_path"]:
        print(USAGE)
        print("")
        print("Examples:")
        print("  python query.py beef tomato egg")
        print("  python query.py --diet vegetarian tomato basil pasta")
        print("  python query.py --image images/fridge.png --debug")
        sys.exit(1)

    try:
        options = RecommendOptions(
            calorie_limit=float(args["calorie_limit"]) if args["calorie_limit"] else None,
            max_results=int(args["max_results"]) if args["max_results"] else None,
        )
        asyncio.run(
            run_query(
                args["ingredients"],
                dietary_filter=args["dietary_filter"],
                options=options,
                image_path=args["image_path"],
                debug=args["debug"],
            )
        )
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)
