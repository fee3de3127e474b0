from textwrap import dedent
from typing import Any, Mapping, Optional

_DECODER_HINTS = {
    "diffusion": "- Apply diffusion-style noise patterns",
    "gan": "- Apply GAN-style generation artifacts",
    "vae": "- Blend features smoothly, as if interpolated in a variational latent space",
    "autoencoder": "- Stay close to the source, as a plain autoencoder reconstruction would",
}

_VARIATION_TEMPLATE = dedent(
    """\
    You are a synthetic image generator for data augmentation.
    Given this input image{subject}, generate a realistic synthetic variation of it.
    The variation should:
    - Maintain the same class/category as the original
    - Have subtle but meaningful differences (lighting, angle, texture variations)
    - Look like a real sample, not an obvious copy
    - Preserve key features that define the class
    """
)


def _parameter_lines(parameters: Optional[Mapping[str, Any]]) -> list[str]:
    if not parameters:
        return []

    lines = []
    hint = _DECODER_HINTS.get(str(parameters.get("decoder_type", "")).lower())
    if hint:
        lines.append(hint)

    strategy = parameters.get("sampling_strategy")
    neighbours = parameters.get("k_neighbors")
    if strategy and neighbours:
        lines.append(
            f"- Treat it as an oversampled '{strategy}' class sample drawn between roughly {neighbours} close neighbours"
        )
    if parameters.get("outlier_detection"):
        lines.append("- Avoid unusual compositions that would look like outliers of the class")
    return lines


def get_synthetic_variation_prompt(
    description: Optional[str] = None,
    parameters: Optional[Mapping[str, Any]] = None,
) -> str:
    subject = f" which shows: {description.strip()}" if description and description.strip() else ""
    lines = [_VARIATION_TEMPLATE.format(subject=subject).rstrip("\n")]
    lines.extend(_parameter_lines(parameters))
    lines.append("Generate one synthetic image variation.")
    return "\n".join(lines)
