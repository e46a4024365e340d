import copy
import logging
import re
from typing import Any, Dict, List, Optional, Union

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from sklearn.metrics import accuracy_score, roc_auc_score
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler
from torch.utils.data import DataLoader, TensorDataset

logger = logging.getLogger(__name__)

ACTIVATIONS = {
    "tanh": nn.Tanh,
    "relu": nn.ReLU,
    "ReLU": nn.ReLU,
    "sigmoid": nn.Sigmoid,
}


def parse_hidden_layers(layers: Union[str, int, List[int]], n_inputs: int) -> List[int]:
    """
    Resolve a hidden layer description into layer sizes.

    ``3`` is one layer of three neurons, ``"N,N-1"`` two layers sized
    relative to the number of inputs ``N``.
    """
    if isinstance(layers, int):
        return [layers]
    if isinstance(layers, (list, tuple)):
        return [int(units) for units in layers]

    sizes = []
    for token in str(layers).split(","):
        token = token.strip().replace(" ", "")
        match = re.fullmatch(r"N([+-]\d+)?", token)
        if match:
            units = n_inputs + int(match.group(1) or 0)
        else:
            units = int(token)
        if units <= 0:
            raise ValueError(f"Hidden layer '{token}' resolves to {units} neurons")
        sizes.append(units)
    return sizes


class ClassifierNet(nn.Module):
    """Fully connected network producing one signal logit per event."""

    def __init__(self, input_dim: int, hidden_layers: List[int], neuron_type: str = "tanh"):
        super(ClassifierNet, self).__init__()

        if neuron_type not in ACTIVATIONS:
            raise ValueError(f"Unsupported NeuronType: {neuron_type}")

        layers = []
        prev_dim = input_dim
        for units in hidden_layers:
            layers.extend([nn.Linear(prev_dim, units), ACTIVATIONS[neuron_type]()])
            prev_dim = units

        layers.append(nn.Linear(prev_dim, 1))
        self.network = nn.Sequential(*layers)

    def forward(self, x):
        return self.network(x)


class NeuralNetworkClassifier:
    """
    Multilayer perceptron classifier trained with binary cross-entropy.

    Recognised options: HiddenLayers, NeuronType, NCycles (epochs),
    LearningRate, BatchSize and ConvergenceTests (early stopping patience).
    """

    def __init__(
        self,
        options: Optional[Dict[str, Any]] = None,
        feature_names: Optional[List[str]] = None,
        random_state: int = 42,
        device: str = "auto",
    ):
        options = dict(options or {})
        self.feature_names = list(feature_names) if feature_names else None
        self.random_state = random_state

        self.hidden_layer_option = options.get("HiddenLayers", "N,N-1")
        self.neuron_type = str(options.get("NeuronType", "tanh"))
        self.epochs = int(options.get("NCycles", 200))
        self.learning_rate = float(options.get("LearningRate", 1e-3))
        self.batch_size = int(options.get("BatchSize", 256))
        self.patience = int(options.get("ConvergenceTests", 20))

        self.model = None
        self.scaler = StandardScaler()
        self.history = None

        if device == "auto":
            self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        else:
            self.device = torch.device(device)

        logger.info(f"Using device: {self.device}")

    def build_model(self, input_dim: int) -> ClassifierNet:
        hidden_layers = parse_hidden_layers(self.hidden_layer_option, input_dim)
        self.model = ClassifierNet(input_dim, hidden_layers, self.neuron_type)
        self.model.to(self.device)

        total_params = sum(p.numel() for p in self.model.parameters() if p.requires_grad)
        logger.info(
            f"Built MLP {hidden_layers} ({self.neuron_type}) with {total_params:,} parameters"
        )
        return self.model

    def _loader(self, X: np.ndarray, y: np.ndarray, shuffle: bool) -> DataLoader:
        X_tensor = torch.FloatTensor(X).to(self.device)
        y_tensor = torch.FloatTensor(y.reshape(-1, 1)).to(self.device)
        return DataLoader(
            TensorDataset(X_tensor, y_tensor), batch_size=self.batch_size, shuffle=shuffle
        )

    def train(self, X_train: np.ndarray, y_train: np.ndarray) -> Dict[str, float]:
        """
        Train on signal (1) / background (0) labels.

        20% of the training sample is held out for early stopping; the
        weights with the lowest validation loss are kept.
        """
        logger.info("Training MLP classifier...")
        torch.manual_seed(self.random_state)

        X_train = np.asarray(X_train, dtype=np.float32)
        y_train = np.asarray(y_train, dtype=np.float32)
        X_fit, X_val, y_fit, y_val = train_test_split(
            X_train,
            y_train,
            test_size=0.2,
            random_state=self.random_state,
            stratify=y_train,
        )

        X_fit = self.scaler.fit_transform(X_fit)
        X_val_scaled = self.scaler.transform(X_val)

        self.build_model(X_fit.shape[1])
        criterion = nn.BCEWithLogitsLoss()
        train_loader = self._loader(X_fit, y_fit, shuffle=True)
        val_loader = self._loader(X_val_scaled, y_val, shuffle=False)

        optimizer = optim.Adam(self.model.parameters(), lr=self.learning_rate)
        scheduler = optim.lr_scheduler.ReduceLROnPlateau(
            optimizer, patience=10, factor=0.5, min_lr=1e-6
        )

        train_losses = []
        val_losses = []
        best_val_loss = float("inf")
        best_state = copy.deepcopy(self.model.state_dict())
        patience_counter = 0

        for epoch in range(self.epochs):
            self.model.train()
            train_loss = 0.0
            for batch_X, batch_y in train_loader:
                optimizer.zero_grad()
                loss = criterion(self.model(batch_X), batch_y)
                loss.backward()
                optimizer.step()
                train_loss += loss.item()
            train_loss /= len(train_loader)
            train_losses.append(train_loss)

            self.model.eval()
            val_loss = 0.0
            with torch.no_grad():
                for batch_X, batch_y in val_loader:
                    val_loss += criterion(self.model(batch_X), batch_y).item()
            val_loss /= len(val_loader)
            val_losses.append(val_loss)

            scheduler.step(val_loss)

            if val_loss < best_val_loss:
                best_val_loss = val_loss
                best_state = copy.deepcopy(self.model.state_dict())
                patience_counter = 0
            else:
                patience_counter += 1

            if patience_counter >= self.patience:
                logger.info(f"Early stopping at epoch {epoch+1}")
                break

            if (epoch + 1) % 20 == 0:
                logger.info(
                    f"Epoch {epoch+1}/{self.epochs}, Train Loss: {train_loss:.6f}, "
                    f"Val Loss: {val_loss:.6f}"
                )

        self.model.load_state_dict(best_state)
        self.history = {"train_loss": train_losses, "val_loss": val_losses}

        val_proba = self.predict_proba(X_val)
        metrics = {
            "val_auc": roc_auc_score(y_val, val_proba),
            "val_accuracy": accuracy_score(y_val, (val_proba > 0.5).astype(int)),
            "epochs_trained": len(train_losses),
            "best_val_loss": best_val_loss,
        }

        logger.info(f"Training complete. Validation AUC: {metrics['val_auc']:.4f}")
        return metrics

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Signal probability of each event."""
        if self.model is None:
            raise ValueError("Model not trained yet!")

        self.model.eval()
        X_scaled = self.scaler.transform(np.asarray(X, dtype=np.float32))
        with torch.no_grad():
            X_tensor = torch.FloatTensor(X_scaled).to(self.device)
            proba = torch.sigmoid(self.model(X_tensor)).cpu().numpy()

        return proba.flatten()

    def predict_score(self, X: np.ndarray) -> np.ndarray:
        """Classifier response in [-1, 1]; signal-like events score high."""
        return 2.0 * self.predict_proba(X) - 1.0
