import argparse
import logging
import sys
from typing import List, Optional

from softgl.config import RenderConfig
from softgl.obj import load_obj
from softgl.pipeline import SINGLE_PASS_SHADERS, render, render_single_pass, render_wireframe
from softgl.textures import load_texture_set, save_image

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
SHADER_CHOICES = ("shadow",) + SINGLE_PASS_SHADERS + ("wireframe",)
TEXTURED = ("shadow", "texture", "normal", "specular")


def configure_logging(level: str = "INFO"):
    """Single softgl stream handler on the root logger; repeated calls replace it."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == "softgl":
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.set_name("softgl")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="softgl",
        description="Render an OBJ mesh with the software rasterizer.",
    )
    parser.add_argument("model", nargs="?", default="obj/african_head/african_head",
                        help="model base path: <base>.obj plus <base>_diffuse.tga, "
                             "<base>_nm_tangent.tga, <base>_spec.tga")
    parser.add_argument("-o", "--output", default="output.tga")
    parser.add_argument("--shader", choices=SHADER_CHOICES, default="shadow")
    parser.add_argument("--depth-out", help="write the shadow pass depth image here")
    parser.add_argument("--zbuffer-out", help="write the final z-buffer here")
    parser.add_argument("--show", action="store_true", help="open a preview window")

    defaults = RenderConfig()
    parser.add_argument("--size", nargs=2, type=int, metavar=("W", "H"),
                        default=(defaults.width, defaults.height))
    parser.add_argument("--eye", nargs=3, type=float, default=defaults.eye)
    parser.add_argument("--center", nargs=3, type=float, default=defaults.center)
    parser.add_argument("--up", nargs=3, type=float, default=defaults.up)
    parser.add_argument("--light", nargs=3, type=float, default=defaults.light_dir)
    parser.add_argument("--bias", type=float, default=defaults.shadow_bias,
                        help="shadow depth bias against self-shadowing")
    parser.add_argument("--dim", type=float, default=defaults.shadow_dim,
                        help="light factor applied in shadow")
    parser.add_argument("--specular-weight", type=float, default=defaults.specular_weight,
                        help="weight of the specular highlight (default: per shader)")
    parser.add_argument("--log-level", default="INFO")
    return parser


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    return RenderConfig(
        width=args.size[0],
        height=args.size[1],
        light_dir=tuple(args.light),
        eye=tuple(args.eye),
        center=tuple(args.center),
        up=tuple(args.up),
        shadow_bias=args.bias,
        shadow_dim=args.dim,
        specular_weight=args.specular_weight,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = config_from_args(args)
        mesh = load_obj(f"{args.model}.obj")
        textures = load_texture_set(args.model) if args.shader in TEXTURED else None

        if args.shader == "shadow":
            frame = render(mesh, textures, config)
        elif args.shader == "wireframe":
            frame = render_wireframe(mesh, config)
        else:
            frame = render_single_pass(mesh, args.shader, textures, config)

        save_image(frame.color, args.output)
        if args.depth_out:
            if frame.shadow is None:
                logger.warning("--depth-out ignored: shader '%s' has no shadow pass", args.shader)
            else:
                save_image(frame.shadow.image, args.depth_out)
        if args.zbuffer_out:
            save_image(frame.depth, args.zbuffer_out)
    except (OSError, ValueError) as exc:
        logger.error("Render failed: %s", exc)
        return 1

    if args.show:
        from softgl.preview import show
        show(frame.color, title=f"softgl - {args.shader}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
