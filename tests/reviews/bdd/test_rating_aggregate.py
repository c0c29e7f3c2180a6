"""BDD tests for the product rating aggregate."""

from pytest_bdd import parsers, scenarios, then, when
from reviews.exceptions import ReviewError

scenarios("features/rating_aggregate.feature")


@when(parsers.cfparse('user "{user_id}" reviews product "{product_id}" with rating {rating:d} and comment "{comment}"'))
def submit_review(service, user_id, product_id, rating, comment, error):
    try:
        service.submit_review(user_id=user_id, product_id=product_id, rating=rating, comment=comment)
    except ReviewError as exc:
        error["exc"] = exc


@when(parsers.cfparse('user "{user_id}" deletes their review of product "{product_id}"'))
def delete_review(service, store, user_id, product_id):
    review = store.find_for_pair(user_id, product_id)
    service.delete_review(str(review.id), user_id)


@when(parsers.cfparse('user "{user_id}" changes their rating of product "{product_id}" to {rating:d}'))
def change_rating(service, store, user_id, product_id, rating):
    review = store.find_for_pair(user_id, product_id)
    service.update_review(str(review.id), user_id, {"rating": rating})


@then(parsers.cfparse('product "{product_id}" has average {average:f} over {count:d} reviews'))
def aggregate_is(sink, product_id, average, count):
    summary = sink.read(product_id)
    assert summary.average == average
    assert summary.count == count


@then(parsers.cfparse('product "{product_id}" has breakdown "{breakdown}"'))
def breakdown_is(sink, product_id, breakdown):
    expected = {star: int(n) for star, n in zip(range(1, 6), breakdown.split(","), strict=True)}
    assert sink.read(product_id).breakdown == expected
