import mlflow
from typing import Optional
from packages.ml_ops.modeling.pipeline import TrainedModel, LucidMLflowWrapper


class RegistryClient:
    """
    Unified client for interacting with the MLflow Model Registry.
    Handles both loading (reading) and registering (writing) trained models.
    """

    def __init__(self, tracking_uri: str, logger=None):
        self.tracking_uri = tracking_uri
        self.logger = logger
        mlflow.set_tracking_uri(self.tracking_uri)

    # --- READ METHOD ---
    def load_model(
        self, model_name: str, alias: str = "production"
    ) -> Optional[TrainedModel]:
        """Loads a TrainedModel from the MLflow registry."""
        uri = f"models:/{model_name}@{alias}"

        if self.logger:
            self.logger.info(f"Loading model from registry: {uri}")

        try:
            wrapper = mlflow.pyfunc.load_model(uri)
            trained = wrapper._model_impl.python_model.trained

            if isinstance(trained, TrainedModel):
                if self.logger:
                    self.logger.success(
                        f"Successfully loaded model '{model_name}'."
                    )
                return trained

            if self.logger:
                self.logger.error(
                    f"Failed to unwrap TrainedModel from loaded model '{model_name}'."
                )
            return None

        except Exception as e:
            if self.logger:
                self.logger.error(f"Could not load model '{uri}' from registry: {e}")
            return None

    # --- WRITE METHOD ---
    def register_model(self, model_name: str, trained: TrainedModel) -> str:
        """Wraps and registers a trained model to the MLflow Model Registry."""
        if self.logger:
            self.logger.info(f"Registering model '{model_name}' to MLflow...")

        model_info = mlflow.pyfunc.log_model(
            name="model",
            python_model=LucidMLflowWrapper(trained),
            registered_model_name=model_name,
        )
        trained.run_id = model_info.run_id
        return model_info.registered_model_version
