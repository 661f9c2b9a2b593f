import logging
import pathlib
from typing import List, Optional

from tap import Tap

from . import png
from .wvfc import MimicWFC, generate


class MimicParser(Tap):
    sample: pathlib.Path  # PNG to imitate
    output: pathlib.Path  # where to write the generated PNG
    order: int = 2  # size of the square neighborhoods that are copied
    width: int = 48
    height: int = 48
    periodic_input: bool = False  # the sample tiles seamlessly
    periodic_output: bool = False  # make the output tile seamlessly
    symmetry: int = 1  # how many of the 8 rotations/reflections to use
    surround: bool = False  # frame the output with the sample's top-left pixel
    seed: int = 0
    trials: int = 10  # seeds to try before giving up
    limit: int = 0  # observe rounds per trial, 0 for no limit
    verbose: bool = False


def main(argv: Optional[List[str]] = None) -> None:
    args = MimicParser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)-8s | %(name)-25s | %(message)s",
    )
    print(f"Running with args {args}")

    image = png.load_png(args.sample)
    channels = image.shape[2] if image.ndim == 3 else 0
    wvfc = MimicWFC(
        png.image_to_items(image),
        order=args.order,
        width=args.width,
        height=args.height,
        periodic_input=args.periodic_input,
        periodic_output=args.periodic_output,
        symmetry=args.symmetry,
        surround=args.surround,
    )
    generated = generate(wvfc, seed=args.seed, trials=args.trials, limit=args.limit)
    png.save_png(png.items_to_image(generated, channels), args.output)


if __name__ == "__main__":
    main()
