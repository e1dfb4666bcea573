"""
Foreground/background classification of panoptic segment labels.

Labels come from a COCO-panoptic model. Things (people, animals, objects,
street furniture, plants) are foreground; stuff (sky, road, ground, sea) is
background; a few large structures are treated as foreground only when the
model is very sure and the scene is busy.
"""
from typing import Literal, Sequence

SegmentClass = Literal["foreground", "background", "uncertain"]

FOREGROUND_LABELS = frozenset({
    # people and vehicles
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train",
    "truck", "boat",
    # animals
    "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear",
    "zebra", "giraffe",
    # accessories and sports
    "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee", "skis",
    "snowboard", "sports ball", "kite", "baseball bat", "baseball glove",
    "skateboard", "surfboard", "tennis racket",
    # kitchen and food
    "bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl",
    "banana", "apple", "sandwich", "orange", "broccoli", "carrot", "hot dog",
    "pizza", "donut", "cake",
    # furniture and appliances
    "chair", "couch", "potted plant", "bed", "dining table", "toilet", "tv",
    "laptop", "mouse", "remote", "keyboard", "cell phone", "microwave",
    "oven", "toaster", "sink", "refrigerator", "book", "clock", "vase",
    "scissors", "teddy bear", "hair drier", "toothbrush",
    # street objects
    "traffic light", "fire hydrant", "stop sign", "parking meter", "bench",
    "street sign", "streetlight", "light", "tower", "pole", "post",
    "mailbox", "signboard", "banner", "flag",
    # plants and landmarks
    "tree", "plant", "flower", "bush", "sculpture", "statue", "monument",
    "fountain",
})

BACKGROUND_KEYWORDS = ("sky", "road", "pavement", "ground", "grass-merged", "sea")

AMBIGUOUS_LABELS = frozenset({"tree-merged", "building-other-merged", "wall", "fence"})

AMBIGUOUS_MIN_SCORE = 0.95
AMBIGUOUS_MIN_SEGMENTS = 3


def classify_segment(label: str, score: float, all_segments: Sequence) -> SegmentClass:
    """
    Classify one panoptic segment.

    Args:
        label: Model label, any case
        score: Model confidence for the segment
        all_segments: Every segment returned for the image

    Returns:
        "foreground", "background" or "uncertain"
    """
    lower_label = label.lower()

    if lower_label in FOREGROUND_LABELS:
        return "foreground"

    if any(keyword in lower_label for keyword in BACKGROUND_KEYWORDS):
        return "background"

    if lower_label in AMBIGUOUS_LABELS:
        if score > AMBIGUOUS_MIN_SCORE and len(all_segments) > AMBIGUOUS_MIN_SEGMENTS:
            return "uncertain"
        return "background"

    return "background"
