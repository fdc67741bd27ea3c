import argparse
import math
import random
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from nearmatch.database import build_engine, build_session_factory, init_db
from nearmatch.repo import UserRepository


def scatter(lat: float, lon: float, radius_km: float, rng: random.Random) -> tuple[float, float]:
    # Uniform over the disc, small-angle offsets.
    distance = radius_km * math.sqrt(rng.random())
    bearing = rng.uniform(0, 2 * math.pi)
    dlat = (distance / 6371.0) * (180 / math.pi) * math.cos(bearing)
    dlon = (distance / (6371.0 * math.cos(math.radians(lat)))) * (180 / math.pi) * math.sin(bearing)
    lon = ((lon + dlon + 180.0) % 360.0) - 180.0
    return max(-90.0, min(90.0, lat + dlat)), lon


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo users around a point")
    parser.add_argument("--n-users", type=int, default=100)
    parser.add_argument("--lat", type=float, default=55.75)
    parser.add_argument("--lon", type=float, default=37.61)
    parser.add_argument("--radius-km", type=float, default=30.0)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--database-url", type=str, default="")
    args = parser.parse_args()

    engine = build_engine(args.database_url) if args.database_url else build_engine()
    init_db(engine)
    users = UserRepository(build_session_factory(engine))
    rng = random.Random(args.seed)

    created = 0
    for i in range(args.n_users):
        lat, lon = scatter(args.lat, args.lon, args.radius_km, rng)
        users.create(
            display_name=f"Demo {i + 1}",
            age=rng.randint(18, 45),
            gender=rng.choice(["male", "female"]),
            is_profile_visible=rng.random() > 0.1,
            is_onboarding_completed=rng.random() > 0.2,
            latitude=lat,
            longitude=lon,
        )
        created += 1

    print("Seed completed")
    print(f"- users: {created}")


if __name__ == "__main__":
    main()
