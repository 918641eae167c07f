from __future__ import annotations

import io
import logging
from pathlib import Path

import torch
import torch.nn as nn
from PIL import Image, UnidentifiedImageError
from torchvision import transforms
from torchvision.models import mobilenet_v2

from growsmart.core.schemas import Prediction
from growsmart.core.taxonomy import DISEASE_CLASSES
from growsmart.services.inference_service import BackendError


logger = logging.getLogger(__name__)

# ImageFolder sorts class directories, so checkpoints trained on the
# PlantVillage tree index classes in sorted-label order.
DEFAULT_CLASS_NAMES: tuple[str, ...] = tuple(sorted(DISEASE_CLASSES))


class MobileNetV2Classifier(nn.Module):
    """
    Must match the training-time attribute names: the checkpoint stores
    `network.`-prefixed keys with the last classifier layer replaced.
    """

    def __init__(self, num_classes: int):
        super().__init__()
        self.network = mobilenet_v2(weights=None)
        self.network.classifier[1] = nn.Linear(self.network.last_channel, num_classes)

    def forward(self, xb):
        return self.network(xb)


class LocalModelBackend:
    """Specialized on-box classifier, tried before the remote backends."""

    def __init__(
        self,
        model_path: str,
        class_names: tuple[str, ...] | list[str] = DEFAULT_CLASS_NAMES,
        device: str | None = None,
        top_k: int = 3,
    ):
        self.class_names = list(class_names)
        self.top_k = top_k
        self.name = "local-mobilenetv2"

        model_path = Path(model_path)
        if not model_path.exists():
            raise FileNotFoundError(f"Model checkpoint not found: {model_path}")

        if device:
            self.device = torch.device(device)
        else:
            self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")

        logger.info("Loading local plant classifier on device: %s", self.device)

        self.model = MobileNetV2Classifier(num_classes=len(self.class_names))
        state = torch.load(model_path, map_location=self.device)
        self.model.load_state_dict(state)
        self.model.to(self.device)
        self.model.eval()

        self.transform = transforms.Compose(
            [
                transforms.Resize((224, 224)),
                transforms.ToTensor(),
                transforms.Normalize(
                    mean=[0.485, 0.456, 0.406],
                    std=[0.229, 0.224, 0.225],
                ),
            ]
        )

    def predict(self, image_bytes: bytes) -> list[Prediction]:
        try:
            image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise BackendError(f"{self.name} could not decode image: {exc}") from exc

        tensor = self.transform(image).unsqueeze(0).to(self.device)

        with torch.no_grad():
            outputs = self.model(tensor)
            probs = torch.softmax(outputs[0], dim=0)
            k = min(self.top_k, probs.shape[0])
            vals, idxs = torch.topk(probs, k=k)

        return [
            Prediction(label=self.class_names[i].strip(), score=float(p))
            for p, i in zip(vals.tolist(), idxs.tolist())
        ]
