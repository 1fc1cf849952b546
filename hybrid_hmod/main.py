import argparse
import sys
from pathlib import Path

from hybrid_hmod import __version__
from hybrid_hmod.archive import extract_archive, open_archive
from hybrid_hmod.assembly import AssemblyResult, Stage
from hybrid_hmod.bundle import (
    detect_dump,
    verify_bundled_hmod_files,
    verify_bundled_launcher_files,
)
from hybrid_hmod.config import settings
from hybrid_hmod.exceptions import HmodError
from hybrid_hmod.logging import LoggerFactory, operation_context, setup_logging
from hybrid_hmod.pipeline import build_hmod
from hybrid_hmod.profiles import PROFILES, ProfileId, resolve_profile


STAGE_LABELS = {
    Stage.COPY: "Copying the NESC dump files to the HMOD folder",
    Stage.TEXT_PATCH: "Patching up text scripts and game files in the HMOD folder",
    Stage.BINARY_PATCH: "Patching up binary files in the HMOD folder",
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="hybrid-hmod",
        description="SNES / NES Classic hybrid dual boot HMOD builder",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Log every archive entry and patch")
    parser.add_argument("--log-dir", type=Path, help="Directory for log files")
    parser.add_argument("--dump-dir", type=Path, help="Directory holding the NESC dump")
    parser.add_argument("--hmod-dir", type=Path, help="HMOD directory to populate")
    parser.add_argument("--launcher-dir", type=Path, help="Directory holding CLV-S-00NES")
    parser.add_argument(
        "--dump",
        type=Path,
        help="Explicit dump archive; its filename must be a recognized dump",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("build", help="Build the HMOD (default)")
    extract = subparsers.add_parser("extract", help="Unpack the dump archive")
    extract.add_argument("-o", "--output", type=Path, help="Output directory (default: dump dir)")
    subparsers.add_parser("profiles", help="List recognized dump files")
    return parser


def _resolve_dirs(args):
    dump_dir = args.dump_dir or settings.get_path("dump_dir")
    hmod_dir = args.hmod_dir or settings.get_path("hmod_dir")
    launcher_dir = args.launcher_dir or settings.get_path("launcher_dir")
    return dump_dir, hmod_dir, launcher_dir


def _select_dump(args, dump_dir):
    if args.dump is not None:
        profile = resolve_profile(args.dump.name)
        return profile.id, args.dump
    return detect_dump(dump_dir)


def _report(result: AssemblyResult, log) -> None:
    completed = {stage_result.stage: stage_result for stage_result in result.stages}
    for stage in Stage:
        label = STAGE_LABELS[stage]
        stage_result = completed.get(stage)
        if stage_result is None:
            log.warning(f"{label}: skipped")
            continue
        if stage_result.ok:
            log.success(f"{label}: done ({len(stage_result.changes)} changes)")
            continue
        for error in stage_result.errors:
            log.error(f"{label}: {error}")


def run_profiles(log) -> int:
    for profile_id in ProfileId:
        profile = PROFILES[profile_id]
        log.info(
            f"{profile_id.name}: {profile_id.token} "
            f"({profile.region.value}, {len(profile.content_identifiers)} titles)"
        )
    return 0


def run_extract(args, log) -> int:
    dump_dir, _, _ = _resolve_dirs(args)
    _, dump_path = _select_dump(args, dump_dir)
    output = args.output or dump_dir
    log.info(f"Extracting {dump_path.name} to {output}...")
    archive = open_archive(dump_path)
    count = extract_archive(archive, output)
    log.success(f"NESC dump archive extracted successfully! ({count} entries)")
    return 0


def run_build(args, log) -> int:
    dump_dir, hmod_dir, launcher_dir = _resolve_dirs(args)
    log.info(f"SNES / NES Classic Hybrid Dual Boot Tool v{__version__}")

    log.info("Verifying that the pre-bundled HMOD files are present...")
    verify_bundled_hmod_files(hmod_dir)
    log.success("Pre-bundled HMOD files verified successfully!")

    log.info("Verifying that the pre-bundled NESC launcher files are present...")
    verify_bundled_launcher_files(launcher_dir)
    log.success("Pre-bundled NESC launcher files verified successfully!")

    log.info("Detecting NESC dump archive file...")
    profile_id, dump_path = _select_dump(args, dump_dir)
    log.success(f"Detected a NESC dump archive successfully! File: {dump_path.name}")

    log.info("Reading the NESC dump archive and assembling the HMOD...")
    result = build_hmod(dump_path, profile_id, hmod_dir)
    _report(result, log)
    if not result.ok:
        log.error(f"Build failed; {hmod_dir} is not a usable HMOD")
        return 1

    log.success(
        "Complete! Install the resulting HMOD using hakchi2, and copy the CLV-S-00NES "
        "folder to the games_snes folder in hakchi to sync it to your console."
    )
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        debug=args.debug,
        trace=args.trace,
        log_dir=args.log_dir or settings.get_path("log_dir"),
        file_logging=settings.get_bool("file_logging", True),
    )
    log = LoggerFactory.for_cli()

    command = args.command or "build"
    try:
        if command == "profiles":
            return run_profiles(log)
        if command == "extract":
            with operation_context("extract"):
                return run_extract(args, log)
        with operation_context("build"):
            return run_build(args, log)
    except (HmodError, OSError) as error:
        log.error(str(error))
        return 1


if __name__ == "__main__":
    sys.exit(main())
