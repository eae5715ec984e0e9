"""
Demo: Masked Walks

Walks an image only where a threshold mask is set, with every traversal
preset, and visualizes the visiting order.

Usage:
    python experiments/demo_masked_walks.py --image path/to/image.jpg
    python experiments/demo_masked_walks.py --config random --threshold 100
"""

import argparse
import sys

sys.path.append("..")

from pathlib import Path

import cv2
import matplotlib.pyplot as plt
import numpy as np
from scipy import ndimage

from gridwalk.config import CONFIGS, get_config
from gridwalk.masked_walker import MaskedWalker


def create_test_image(size=(128, 128)):
    """Create a test image with a few bright shapes on a dark gradient."""
    img = np.zeros((size[0], size[1], 3), dtype=np.uint8)

    for i in range(size[0]):
        img[i, :, :] = [i * 80 // size[0], 40, 80 - i * 80 // size[0]]

    cv2.circle(img, (size[1] // 4, size[0] // 4), 20, (255, 60, 60), -1)
    cv2.rectangle(
        img, (size[1] // 2, size[0] // 2), (size[1] // 2 + 40, size[0] // 2 + 40), (60, 255, 60), -1
    )
    cv2.circle(img, (3 * size[1] // 4, size[0] // 4), 12, (60, 60, 255), -1)

    return img


def threshold_mask(image: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Binary mask of bright pixels, with speckle removed."""
    gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY) if image.ndim == 3 else image
    mask = ndimage.binary_opening(gray > threshold, iterations=2)
    return mask.astype(np.uint8)


def rescale_in_mask(walker: MaskedWalker, out_min: float = 0.0, out_max: float = 255.0) -> int:
    """Stretch image values inside the mask to [out_min, out_max]."""
    path = walker.walk()
    if not path:
        return 0

    values = np.array([step.value for step in path], dtype=float)
    in_min, in_max = values.min(), values.max()
    scale = (out_max - out_min) / (in_max - in_min + 1e-8)

    return walker.apply(lambda v: np.clip((v - in_min) * scale + out_min, out_min, out_max))


def demo_walk_orders(image: np.ndarray, mask: np.ndarray, output_dir: Path, max_steps: int):
    """Run every preset forward and draw the paths side by side."""
    names = list(CONFIGS.keys())
    fig, axes = plt.subplots(1, len(names), figsize=(4 * len(names), 4))

    for idx, name in enumerate(names):
        print(f"Running: {name}...")
        walker = MaskedWalker(image, mask, config=get_config(name))

        path = walker.walk(max_steps=max_steps)
        viz = walker.visualize(path, line_thickness=1, color=(255, 255, 0))

        axes[idx].imshow(viz)
        axes[idx].set_title(f"{name}\n({len(path)} steps)")
        axes[idx].axis("off")

    plt.tight_layout()
    save_path = output_dir / "masked_walks_comparison.png"
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    print(f"Saved: {save_path}")
    plt.close()


def demo_walk_statistics(image: np.ndarray, mask: np.ndarray):
    """Compare coverage and value statistics per preset."""
    stats = {}
    for name, config in CONFIGS.items():
        walker = MaskedWalker(image, mask, config=config)
        path = walker.walk()
        colors = [
            step.value.mean() if isinstance(step.value, np.ndarray) else step.value for step in path
        ]

        stats[name] = {
            "path_length": len(path),
            "coverage": walker.coverage(),
            "avg_color": np.mean(colors) if colors else 0.0,
            "std_color": np.std(colors) if colors else 0.0,
        }

    print("\n=== Walk Statistics ===")
    print(f"{'Config':<20} {'Steps':<10} {'Coverage':<12} {'Avg Color':<15} {'Color StdDev':<15}")
    print("-" * 72)
    for name, stat in stats.items():
        print(
            f"{name:<20} {stat['path_length']:<10} "
            f"{stat['coverage']:<12.2%} "
            f"{stat['avg_color']:<15.2f} "
            f"{stat['std_color']:<15.2f}"
        )


def demo_rescale(image: np.ndarray, mask: np.ndarray, config_name: str, output_dir: Path):
    """Rescale the image inside the mask only, leaving the rest untouched."""
    walker = MaskedWalker(image.astype(np.float64), mask, config=get_config(config_name))
    written = rescale_in_mask(walker)
    print(f"Rescaled {written} pixels inside the mask")

    save_path = output_dir / "rescaled_in_mask.png"
    result = walker.image.clip(0, 255).astype(np.uint8)
    cv2.imwrite(str(save_path), cv2.cvtColor(result, cv2.COLOR_RGB2BGR))
    print(f"Saved: {save_path}")


def main():
    parser = argparse.ArgumentParser(description="Masked Walk Demo")
    parser.add_argument("--image", type=str, default=None, help="Path to input image")
    parser.add_argument(
        "--config", type=str, default="default", choices=list(CONFIGS.keys()),
        help="Config used for the rescale demo",
    )
    parser.add_argument("--threshold", type=int, default=128, help="Mask threshold on grayscale")
    parser.add_argument("--max-steps", type=int, default=2000, help="Steps drawn per walk")
    parser.add_argument("--output-dir", type=str, default="experiments/outputs")
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if args.image:
        image = cv2.imread(args.image)
        if image is None:
            raise ValueError(f"Could not load image: {args.image}")
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        print(f"Loaded {args.image}")
    else:
        image = create_test_image()
        print("Created synthetic test image")

    mask = threshold_mask(image, args.threshold)
    print(f"Image shape: {image.shape}, mask coverage: {mask.mean():.2%}")

    print("\n" + "=" * 60)
    print("DEMO 1: Walk Orders")
    print("=" * 60)
    demo_walk_orders(image, mask, output_dir, args.max_steps)

    print("\n" + "=" * 60)
    print("DEMO 2: Walk Statistics")
    print("=" * 60)
    demo_walk_statistics(image, mask)

    print("\n" + "=" * 60)
    print("DEMO 3: Rescale Inside Mask")
    print("=" * 60)
    demo_rescale(image, mask, args.config, output_dir)

    print("\n" + "=" * 60)
    print(f"All demos complete! Check {output_dir}/ for visualizations.")
    print("=" * 60)


if __name__ == "__main__":
    main()
