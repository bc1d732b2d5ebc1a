"""
NFT collection workflow.
Deploys a capped collection, mints sequential tokens with inline metadata,
then burns a random share after checking ownership.
"""
import base64
import json
import math
import typing as t

from config import NFTConfig
from core.compiler import load_source, render_template
from core.lifecycle import ContractSession
from core.scheduler import OperationScheduler, stamp
from core.workflow import ContractBlueprint
from .erc20 import contract_identifier

NAME_PREFIXES: t.List[str] = [
    "Crypto", "Bored", "Mutant", "Azuki", "Doodle", "Pudgy", "Cool", "Lazy", "Cyber", "Meta",
    "Pixel", "Art", "Punk", "Moon", "Ape", "Chimp", "Digital", "Virtual", "Token", "Chain",
]
NAME_SUFFIXES: t.List[str] = [
    "Apes", "Monkeys", "Punks", "Cats", "Dogs", "Bears", "Club", "Society", "Gang", "Legends",
    "Collection", "Worlds", "Metaverse", "Universe", "Pets", "Friends", "Heroes", "Squad", "Crew", "Team",
]
RARITIES: t.List[str] = ["Common", "Uncommon", "Rare", "Epic", "Legendary", "Mythic"]
CATEGORIES: t.List[str] = ["Art", "Collectible", "Game", "Meme", "PFP", "Utility"]
IMAGE_URL = "https://i.seadn.io/s/raw/files/{}.png?auto=format&dpr=1&w=1920"


class NFTManager:
    label = "NFT"

    def __init__(
        self,
        config: t.Optional[NFTConfig] = None,
        scheduler: t.Optional[OperationScheduler] = None,
        wallet_num: t.Optional[int] = None,
    ) -> None:
        self.config = config or NFTConfig()
        self.scheduler = scheduler or OperationScheduler()
        self.wallet_num = wallet_num
        self.collection_name: t.Optional[str] = None
        self.symbol: t.Optional[str] = None
        self.max_supply: int = 0

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def log(self, message: str) -> None:
        print(f"{stamp(self.wallet_num)} [NFT] {message}")

    def blueprint(self) -> ContractBlueprint:
        prefix = self.scheduler.pick_one(NAME_PREFIXES)
        suffix = self.scheduler.pick_one(NAME_SUFFIXES)
        self.collection_name = f"{prefix} {suffix}"
        self.symbol = "".join(word[0] for word in self.collection_name.split()).upper()
        self.max_supply = self.scheduler.pick_count(max(10, self.config.supply.min), self.config.supply.max)
        identifier = contract_identifier(self.collection_name)
        self.log(f"Collection: {self.collection_name} ({self.symbol}), max supply {self.max_supply}")
        return ContractBlueprint(
            contract_name=identifier,
            source=render_template(load_source("CollectionTemplate.sol"), identifier),
            constructor_args=(self.collection_name, self.symbol, self.max_supply),
            deploy_gas=3_000_000,
        )

    def mint_range(self) -> t.Tuple[int, int]:
        """Mint count bounds, capped at the deployed max supply."""
        low = min(max(1, self.config.mint_count.min), self.max_supply)
        high = min(self.max_supply, max(low, self.config.mint_count.max))
        return low, high

    def token_uri(self, token_id: int) -> str:
        metadata = {
            "name": f"{self.collection_name} #{token_id}",
            "description": f"A unique NFT from the {self.collection_name} collection.",
            "image": IMAGE_URL.format(self.scheduler.random_hex(16)),
            "attributes": [
                {"trait_type": "Rarity", "value": self.scheduler.pick_one(RARITIES)},
                {"trait_type": "Category", "value": self.scheduler.pick_one(CATEGORIES)},
                {"trait_type": "Token ID", "value": token_id},
                {"trait_type": "Generation", "value": "Genesis"},
            ],
        }
        encoded = base64.b64encode(json.dumps(metadata).encode("utf-8")).decode("ascii")
        return f"data:application/json;base64,{encoded}"

    def burn_count(self, minted: int) -> int:
        percentage = self.scheduler.clamp_percent(self.config.burn_percentage)
        return math.ceil(minted * percentage / 100)

    def burn_token(self, session: ContractSession, token_id: int) -> bool:
        owner = session.lifecycle.address
        try:
            token_owner = session.call("ownerOf", token_id)
        except Exception as e:
            self.log(f"Cannot look up owner of #{token_id}: {e}")
            return False
        if str(token_owner).lower() != owner.lower():
            self.log(f"Token #{token_id} is owned by {token_owner}, not {owner}")
            return False
        result = session.transact("burn", token_id, label=f"burning NFT #{token_id}")
        return result.success

    def interact(self, session: ContractSession) -> bool:
        owner = session.lifecycle.address
        low, high = self.mint_range()
        count = self.scheduler.pick_count(low, high)
        self.log(f"Will mint {count} NFTs (range {low}-{high})")

        minted: t.List[int] = []
        for token_id in range(count):
            result = session.transact("mint", owner, token_id, self.token_uri(token_id), label=f"minting NFT #{token_id}")
            if result.success:
                minted.append(token_id)
        self.log(f"Minted {len(minted)}/{count} NFTs")
        if not minted:
            return False

        to_burn = self.scheduler.pick_subset(minted, self.burn_count(len(minted)))
        burned = sum(1 for token_id in to_burn if self.burn_token(session, token_id))
        if to_burn:
            self.log(f"Burned {burned}/{len(to_burn)} NFTs")
        return True
