"""
Mock behavior generator for testing and development.

Generates catalogs of a small web shop and behavior models over them.
"""

import random
from typing import Optional

from .catalog import Catalog, Endpoint, Parameter
from .models import INITIAL_STATE, BehaviorModel, MarkovState, Transition, Variant


# Endpoints of the shop: (id, method, path, parameters)
SHOP_ENDPOINTS = [
    ("home", "GET", "/", []),
    ("login", "POST", "/login", ["username", "password"]),
    ("search", "GET", "/search", ["q"]),
    ("product", "GET", "/products/{id}", ["id"]),
    ("cart", "GET", "/cart", []),
    ("add_to_cart", "POST", "/cart/items", ["product_id", "quantity"]),
    ("checkout", "POST", "/checkout", ["payment"]),
    ("logout", "GET", "/logout", []),
]

# Behavior templates: name -> states visited after the entry state
BEHAVIOR_TEMPLATES = {
    "browser": ["home", "search", "product"],
    "buyer": ["home", "login", "search", "product", "add_to_cart", "cart", "checkout", "logout"],
    "searcher": ["search", "product", "search"],
    "returning": ["login", "cart", "checkout"],
}


class MockBehaviorGenerator:
    """Generates synthetic catalogs and behavior models for testing."""

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            seed: Random seed for reproducibility
        """
        self.rng = random.Random(seed)

    def generate_catalog(
        self,
        version: Optional[str] = None,
        drop: Optional[list[str]] = None,
    ) -> Catalog:
        """
        Generate the shop catalog.

        Args:
            version: Version label of the catalog
            drop: Endpoint ids to leave out (simulates removed endpoints)

        Returns:
            Generated Catalog
        """
        drop = set(drop or [])
        endpoints = []

        for endpoint_id, method, path, parameter_names in SHOP_ENDPOINTS:
            if endpoint_id in drop:
                continue
            parameters = [
                Parameter(parameter_id=f"{endpoint_id}_{name}", name=name)
                for name in parameter_names
            ]
            endpoints.append(Endpoint(
                endpoint_id=endpoint_id,
                method=method,
                path=path,
                headers=["Accept: application/json"],
                parameters=parameters,
            ))

        return Catalog(version=version, endpoints=endpoints)

    def generate_variant(self, template_name: Optional[str] = None, probability: float = 1.0) -> Variant:
        """
        Generate a single variant from a template.

        The variant starts in INITIAL, visits the template's states and may
        loop back or linger; every non-terminal state's transitions sum to 1.

        Args:
            template_name: Behavior template to use (random if None)
            probability: Probability of the variant within its model

        Returns:
            Generated Variant
        """
        if template_name is None:
            template_name = self.rng.choice(list(BEHAVIOR_TEMPLATES.keys()))

        path = BEHAVIOR_TEMPLATES[template_name]
        state_ids = [INITIAL_STATE] + list(dict.fromkeys(path))
        states = {state_id: MarkovState(state_id) for state_id in state_ids}

        # Collect the successors observed along the template path
        successors: dict[str, list[str]] = {}
        previous = INITIAL_STATE
        for state_id in path:
            successors.setdefault(previous, [])
            if state_id not in successors[previous]:
                successors[previous].append(state_id)
            previous = state_id

        for state_id, targets in successors.items():
            # Occasionally linger on a page or return to the start page
            if state_id != INITIAL_STATE and self.rng.random() < 0.3:
                targets = targets + [state_id]
            if "home" in states and "home" not in targets and self.rng.random() < 0.2:
                targets = targets + ["home"]

            weights = [self.rng.uniform(0.5, 2.0) for _ in targets]
            total = sum(weights)
            states[state_id].transitions = [
                Transition(
                    target_state_id=target,
                    probability=weight / total,
                    think_time_mean=round(self.rng.uniform(100.0, 3000.0), 3),
                    think_time_deviation=round(self.rng.uniform(5.0, 200.0), 3),
                )
                for target, weight in zip(targets, weights)
            ]

        return Variant(
            base_name=template_name,
            initial_state_id=INITIAL_STATE,
            probability=probability,
            states=[states[state_id] for state_id in state_ids],
        )

    def generate_model(self, template_names: Optional[list[str]] = None) -> BehaviorModel:
        """
        Generate a behavior model whose variant probabilities sum to 1.

        Args:
            template_names: Templates to include (all if None)

        Returns:
            Generated BehaviorModel
        """
        if template_names is None:
            template_names = list(BEHAVIOR_TEMPLATES.keys())

        weights = [self.rng.uniform(0.5, 2.0) for _ in template_names]
        total = sum(weights)

        return BehaviorModel(variants=[
            self.generate_variant(name, probability=weight / total)
            for name, weight in zip(template_names, weights)
        ])


def generate_sample_model(seed: int = 42) -> BehaviorModel:
    """
    Convenience function to generate a sample behavior model.

    Args:
        seed: Random seed

    Returns:
        BehaviorModel with one variant per template
    """
    generator = MockBehaviorGenerator(seed=seed)
    return generator.generate_model()


if __name__ == "__main__":
    # Demo: generate and print a model
    model = generate_sample_model()
    for variant in model.variants:
        print(f"\n{'='*60}")
        print(f"Behavior: {variant.name} | Probability: {variant.probability:.3f}")
        for state in variant.states:
            targets = ", ".join(f"{t.target_state_id}={t.probability:.2f}" for t in state.transitions or [])
            print(f"  {state.state_id:12} -> {targets}")
