import argparse
import json
import os
import sys

from i18nizer import __version__
from i18nizer.i18n.i18n_manager import I18NManager
from i18nizer.i18n.jsx.syntax_tree import ParseError
from i18nizer.i18n.message_aggregator import AGGREGATOR_FILE_NAME, generate_aggregator
from i18nizer.i18n.run import Run
from i18nizer.utils.config import ConfigManager, generate_config
from i18nizer.utils.globals import AiProvider, Framework, Globals, I18nLibrary
from i18nizer.utils.logging_setup import get_logger, setup_logging
from i18nizer.utils.project_detector import ProjectDetector
from i18nizer.utils.runner_app_config import RunnerAppConfig
from i18nizer.utils.settings_manager import SettingsManager
from i18nizer.utils.translation_cache import TranslationCache

logger = get_logger("app")


def prompt_choice(question, choices, default, input_func=input):
    """Ask for one of choices on the terminal. An empty answer picks the default."""
    while True:
        answer = input_func(f"{question} [{'/'.join(choices)}] ({default}): ").strip().lower()
        if not answer:
            return default
        if answer in choices:
            return answer
        print(f"Please answer one of: {', '.join(choices)}")


def cmd_start(args) -> int:
    project_root = os.getcwd()
    config_manager = ConfigManager(project_root)
    if config_manager.exists and not args.force:
        print(f"{Globals.CONFIG_FILE_NAME} already exists. Use --force to overwrite it.")
        return 1
    if args.preset:
        logger.warning("--preset is deprecated, use --framework instead")
    framework_value = args.preset or args.framework
    if framework_value:
        framework = Framework(framework_value)
        i18n_library = None
    else:
        framework = ProjectDetector.detect_framework(project_root)
        i18n_library = ProjectDetector.detect_i18n_library(project_root)
        if not args.yes and sys.stdin.isatty():
            framework = Framework(prompt_choice(
                "What framework are you using?", [f.value for f in Framework], framework.value))
            if not args.i18n:
                detected = i18n_library.value if i18n_library else I18nLibrary.CUSTOM.value
                i18n_library = I18nLibrary(prompt_choice(
                    "Which i18n library are you using?", [lib.value for lib in I18nLibrary], detected))
    if args.i18n:
        i18n_library = I18nLibrary(args.i18n)
    config = generate_config(framework, i18n_library)
    if os.path.exists(config_manager.config_path):
        os.remove(config_manager.config_path)
    if not config_manager.save(config):
        return 1
    config_manager.ensure_in_gitignore()
    os.makedirs(os.path.join(Globals.project_dir_for(project_root), TranslationCache.CACHE_DIR_NAME), exist_ok=True)
    library = i18n_library.value if i18n_library else config["i18n"]["import"]["source"]
    print(f"Created {Globals.CONFIG_FILE_NAME} for {framework.value} with {library}")
    return 0


def cmd_translate(args) -> int:
    if not args.file and not args.all:
        print("Specify a file or use --all")
        return 2
    if args.file and args.all:
        print("Cannot specify both --all and a file path")
        return 2
    run = Run(args)
    try:
        results = run.execute()
    except KeyboardInterrupt:
        print("Cancelled")
        return 130
    print(results.format_status_report())
    return 0 if results.action_successful else 1


def cmd_extract(args) -> int:
    config = RunnerAppConfig.from_config_manager(ConfigManager(os.getcwd()))
    manager = I18NManager(config, cache=TranslationCache(config.project_root, load=False))
    try:
        spans = manager.extract_spans(args.file)
    except ParseError as e:
        print(f"Could not parse {args.file}: {e}")
        return 1
    print(json.dumps([span.to_dict() for span in spans], ensure_ascii=False, indent=2))
    return 0


def cmd_regenerate(args) -> int:
    project_root = os.getcwd()
    config_manager = ConfigManager(project_root)
    if not config_manager.exists:
        print("Project is not initialized. Run: i18nizer start")
        return 1
    messages_dir = os.path.join(project_root, config_manager.get("messages.path", "messages"))
    output_dir = os.path.join(project_root, config_manager.get("paths.i18n", "i18n"))
    output_path = generate_aggregator(messages_dir, output_dir)
    if output_path is None:
        print(f"No message files found in {messages_dir}")
        return 1
    print(f"Regenerated {os.path.relpath(output_path, project_root)}")
    return 0


def cmd_keys(args) -> int:
    settings_manager = SettingsManager()
    updates = {
        AiProvider.OPENAI: args.set_openai,
        AiProvider.GEMINI: args.set_gemini,
        AiProvider.HUGGINGFACE: args.set_hf,
    }
    changed = False
    for provider, key in updates.items():
        if key:
            if not settings_manager.set_api_key(provider, key):
                return 1
            print(f"Saved {provider.value} API key")
            changed = True
    if args.show or not changed:
        for provider, masked in settings_manager.masked_keys().items():
            print(f"{provider}: {masked}")
    return 0


def cmd_cache(args) -> int:
    cache = TranslationCache(os.getcwd())
    if args.clear:
        cache.clear()
        cache.store()
        print("Cache cleared")
        return 0
    if args.duplicates:
        shared = cache.find_shared_keys()
        if not shared:
            print("No keys are shared by different texts")
        for key, entries in sorted(shared.items()):
            print(f"{key}:")
            for entry in entries:
                print(f"  - {entry.text} ({entry.component_name})")
        return 0
    for entry in sorted(cache.get_all(), key=lambda e: e.key):
        locales = ", ".join(sorted(entry.locales))
        print(f"{entry.key}: {entry.text} [{locales}]")
    print(f"{len(cache)} entries")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="i18nizer", description="Extract JSX texts into translation keys")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and errors")
    subparsers = parser.add_subparsers(dest="command")

    start = subparsers.add_parser("start", help=f"Create {Globals.CONFIG_FILE_NAME} for this project")
    start.add_argument("-f", "--force", action="store_true", help="Overwrite an existing config")
    start.add_argument("--framework", choices=[f.value for f in Framework], help="Skip framework detection")
    start.add_argument("--i18n", choices=[lib.value for lib in I18nLibrary], help="Skip i18n library detection")
    start.add_argument("-p", "--preset", choices=[f.value for f in Framework], help="Deprecated, use --framework")
    start.add_argument("-y", "--yes", action="store_true", help="Use detected values without asking")
    start.set_defaults(func=cmd_start)

    translate = subparsers.add_parser("translate", help="Extract, translate and rewrite components")
    translate.add_argument("file", nargs="?", help="Component file to translate")
    translate.add_argument("--all", action="store_true", help="Translate every component in the project")
    translate.add_argument("--dry-run", action="store_true", help="Do not write any files")
    translate.add_argument("--locales", help="Comma separated locales, e.g. en,es,fr")
    translate.add_argument("--provider", choices=[p.value for p in AiProvider] + ["hf"])
    translate.add_argument("--show-json", action="store_true", help="Print the generated messages")
    translate.add_argument("--workers", type=int, help="Number of files processed in parallel")
    translate.add_argument("--no-ai-keys", action="store_true", help="Only use generated keys")
    translate.add_argument("--no-inject", action="store_true", help="Do not insert the translation hook")
    translate.set_defaults(func=cmd_translate)

    extract = subparsers.add_parser("extract", help="Print the translatable texts of a file")
    extract.add_argument("file")
    extract.set_defaults(func=cmd_extract)

    regenerate = subparsers.add_parser("regenerate", help=f"Rebuild {AGGREGATOR_FILE_NAME} from the message files")
    regenerate.set_defaults(func=cmd_regenerate)

    keys = subparsers.add_parser("keys", help="Manage AI provider API keys")
    keys.add_argument("--set-openai", metavar="KEY")
    keys.add_argument("--set-gemini", metavar="KEY")
    keys.add_argument("--set-hf", "--set-huggingface", dest="set_hf", metavar="KEY")
    keys.add_argument("--show", action="store_true")
    keys.set_defaults(func=cmd_keys)

    cache = subparsers.add_parser("cache", help="Inspect the translation cache")
    cache.add_argument("--duplicates", action="store_true", help="Show keys shared by different texts")
    cache.add_argument("--clear", action="store_true")
    cache.set_defaults(func=cmd_cache)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        setup_logging("DEBUG")
    elif args.quiet:
        setup_logging("WARNING")
    else:
        setup_logging()
    if not getattr(args, "func", None):
        parser.print_help()
        sys.exit(2)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
