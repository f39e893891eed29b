# cli/capture.py
"""Command line interface for offline capture directories."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from capture.payload import CapturePayload
from capture.pipeline import CapturePipeline
from capture.uploader import CaptureUploader
from utils.cli import Command, CommandDispatcher
from utils.config import Config
from utils.io import CaptureFiles, load_capture, save_xyz
from utils.logger import Logger
from utils.settings import paths

logger = Logger.get_logger("cli.capture")


def _add_rescale_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rescale",
        action="store_true",
        help="Rescale intrinsics to the depth map size",
    )


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("captures", nargs="+", help="Capture directories")
    parser.add_argument(
        "--shape",
        choices=("simple", "full"),
        default="full",
        help="Payload layout",
    )
    _add_rescale_arg(parser)


def _add_build_args(parser: argparse.ArgumentParser) -> None:
    """Arguments for the ``build`` subcommand."""
    _add_common_args(parser)
    parser.add_argument(
        "--output_dir",
        default=str(paths.OUTPUT_DIR),
        help="Directory for payload JSON files",
    )


def _add_send_args(parser: argparse.ArgumentParser) -> None:
    """Arguments for the ``send`` subcommand."""
    _add_common_args(parser)
    parser.add_argument("--endpoint", default=None, help="Capture server URL")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds")


def _add_cloud_args(parser: argparse.ArgumentParser) -> None:
    """Arguments for the ``cloud`` subcommand."""
    parser.add_argument("captures", nargs="+", help="Capture directories")
    _add_rescale_arg(parser)
    parser.add_argument(
        "--output_dir",
        default=str(paths.OUTPUT_DIR),
        help="Directory for .xyz files",
    )


def _make_pipeline(
    args: argparse.Namespace, uploader: CaptureUploader | None = None
) -> CapturePipeline:
    """Pipeline with ``--rescale`` or the configured projection default."""
    rescale = args.rescale or Config.projection_cfg().rescale_calibration
    if uploader is None:
        return CapturePipeline(rescale_calibration=rescale)
    return CapturePipeline(uploader=uploader, rescale_calibration=rescale)


def _make_uploader(args: argparse.Namespace) -> CaptureUploader:
    net = Config.transport_cfg()
    return CaptureUploader(
        endpoint=args.endpoint or net.endpoint,
        timeout=args.timeout or net.timeout,
        json_indent=Config.capture_cfg().json_indent,
    )


def _process(
    pipeline: CapturePipeline, files: CaptureFiles, shape: str
) -> CapturePayload:
    return pipeline.process(
        files.depth_map,
        files.calibration,
        files.image,
        files.depth_quality,
        files.depth_accuracy,
        plate_point=files.plate_point,
        shape=shape,
    )


def _run_build(args: argparse.Namespace) -> None:
    """Write one payload JSON per capture directory."""
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    pipeline = _make_pipeline(args)
    json_indent = Config.capture_cfg().json_indent
    for folder in Logger.progress(args.captures, desc="Build"):
        files = load_capture(folder)
        payload = _process(pipeline, files, args.shape)
        indent = None if payload.is_simple else json_indent
        target = out_dir / f"{Path(folder).name}.json"
        target.write_bytes(payload.to_json(indent=indent))
        logger.info(f"Saved payload: {target}")


def _run_send(args: argparse.Namespace) -> None:
    """Build and upload each capture, printing the server reply."""
    pipeline = _make_pipeline(args, uploader=_make_uploader(args))
    for folder in Logger.progress(args.captures, desc="Send"):
        files = load_capture(folder)
        result = pipeline.run(
            files.depth_map,
            files.calibration,
            files.image,
            files.depth_quality,
            files.depth_accuracy,
            plate_point=files.plate_point,
            shape=args.shape,
        )
        logger.info(f"{folder}: {result}")
        print(result)


def _run_cloud(args: argparse.Namespace) -> None:
    """Export the projected point cloud of each capture as XYZ text."""
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    pipeline = _make_pipeline(args)
    for folder in Logger.progress(args.captures, desc="Cloud"):
        files = load_capture(folder)
        grid, calibration = pipeline.read(files.depth_map, files.calibration)
        points = pipeline.project(grid, calibration)
        target = out_dir / f"{Path(folder).name}.xyz"
        save_xyz(target, points)
        logger.info(f"Saved {len(points)} points to {target}")


def create_cli() -> CommandDispatcher:
    """Build the dispatcher with all capture commands."""
    return CommandDispatcher(
        "Depth capture tools",
        [
            Command("build", _run_build, _add_build_args, "Write payload JSON"),
            Command("send", _run_send, _add_send_args, "Upload captures"),
            Command("cloud", _run_cloud, _add_cloud_args, "Export point clouds"),
        ],
    )


def main() -> None:
    """Entry point for the ``capture-cli`` script."""
    Config.load()
    sys.exit(create_cli().run(logger=logger))


if __name__ == "__main__":
    main()
